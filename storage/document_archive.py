"""S3 archive for uploaded schedule documents."""
import logging
import uuid
from typing import List

import boto3
from botocore.exceptions import ClientError

from documents.text_extractor import SourceDocument

logger = logging.getLogger(__name__)


class DocumentArchive:
    """Keeps original schedule documents for later reference."""

    PREFIX = 'schedules/'

    def __init__(self, bucket: str):
        """
        Initialize S3 client.

        Args:
            bucket: Name of the S3 bucket
        """
        self.bucket = bucket
        self.s3 = boto3.client('s3')
        logger.info(f"Initialized DocumentArchive for bucket: {bucket}")

    def save_document(self, document: SourceDocument) -> str:
        """
        Upload a schedule document.

        Args:
            document: SourceDocument to store

        Returns:
            S3 key of the stored object
        """
        key = f"{self.PREFIX}{uuid.uuid4().hex}/{document.name}"
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=document.data,
                ContentType=document.media_type
            )
        except ClientError as e:
            logger.error(f"Error uploading document '{document.name}': {e}")
            raise

        logger.info(f"Archived '{document.name}' as {key}")
        return key

    def list_documents(self) -> List[str]:
        """List keys of all archived documents."""
        keys = []
        paginator = self.s3.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.PREFIX):
            keys.extend(obj['Key'] for obj in page.get('Contents', []))
        return keys
