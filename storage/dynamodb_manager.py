"""DynamoDB manager for planner event storage."""
import logging
import secrets
import time
from datetime import datetime
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from planner.models import ParsedEvent, SaveResult, StoredEvent

logger = logging.getLogger(__name__)


class DynamoDBManager:
    """Manager for DynamoDB operations on planner events."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBManager for table: {table_name}")

    def get_all_events(self) -> Dict[str, StoredEvent]:
        """
        Retrieve all events from DynamoDB using Scan operation.

        Returns:
            Dictionary mapping event_id to StoredEvent objects
        """
        logger.info("Scanning DynamoDB table for all events")
        events = {}

        try:
            response = self.table.scan()
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            for item in items:
                event = self._item_to_stored_event(item)
                if event:
                    events[event.event_id] = event

            logger.info(f"Retrieved {len(events)} events from DynamoDB")
            return events

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise

    def save_events(self, parsed_events: List[ParsedEvent]) -> SaveResult:
        """
        Store parsed events as new planner events.

        Every event gets a fresh identifier and an empty checklist.

        Args:
            parsed_events: Events recognized in a schedule document

        Returns:
            SaveResult with the count and identifiers of written events
        """
        logger.info(f"Saving {len(parsed_events)} parsed events")
        created_at = int(time.time())

        stored_events = [
            StoredEvent(
                event_id=self.generate_event_id(),
                title=event.title,
                start=event.start,
                end=event.end,
                subject=event.subject,
                task_ids=[],
                created_at=created_at
            )
            for event in parsed_events
        ]

        return self.batch_write_events(stored_events)

    def batch_write_events(self, events: List[StoredEvent]) -> SaveResult:
        """
        Write events to DynamoDB in batches of 25 items.

        A failed batch is logged and recorded in the result errors;
        remaining batches are still written.

        Args:
            events: List of StoredEvent objects to write

        Returns:
            SaveResult with the successfully written events
        """
        if not events:
            return SaveResult(saved=0, event_ids=[], errors=[])

        logger.info(f"Writing {len(events)} events to DynamoDB")
        event_ids = []
        errors = []

        for i in range(0, len(events), self.BATCH_SIZE):
            batch = events[i:i + self.BATCH_SIZE]

            try:
                with self.table.batch_writer() as writer:
                    for event in batch:
                        writer.put_item(Item=self._stored_event_to_item(event))
                event_ids.extend(event.event_id for event in batch)

            except ClientError as e:
                error_msg = f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                logger.error(error_msg)
                errors.append(error_msg)
                continue

        logger.info(f"Successfully wrote {len(event_ids)} events")
        return SaveResult(saved=len(event_ids), event_ids=event_ids, errors=errors)

    def delete_event(self, event_id: str) -> None:
        """
        Delete a single event by identifier.

        Args:
            event_id: Identifier of the event to delete
        """
        logger.info(f"Deleting event {event_id}")
        try:
            self.table.delete_item(Key={'event_id': event_id})
        except ClientError as e:
            logger.error(f"Error deleting event {event_id}: {e}")
            raise

    @staticmethod
    def generate_event_id() -> str:
        """
        Generate a durable identifier for a new event.

        Returns:
            Identifier of the form "<epoch milliseconds>-<random suffix>"
        """
        return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}"

    def _item_to_stored_event(self, item: dict) -> Optional[StoredEvent]:
        """
        Convert DynamoDB item to StoredEvent object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            StoredEvent object or None if conversion fails
        """
        try:
            return StoredEvent(
                event_id=item['event_id'],
                title=item['title'],
                start=datetime.fromisoformat(item['start']),
                end=datetime.fromisoformat(item['end']),
                subject=item.get('subject'),
                task_ids=list(item.get('task_ids', [])),
                created_at=int(item.get('created_at', 0))
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to convert item to StoredEvent: {e}")
            return None

    def _stored_event_to_item(self, event: StoredEvent) -> dict:
        """
        Convert StoredEvent object to DynamoDB item.

        Args:
            event: StoredEvent object

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'event_id': event.event_id,
            'title': event.title,
            'start': event.start.isoformat(),
            'end': event.end.isoformat(),
            'task_ids': list(event.task_ids),
            'created_at': event.created_at
        }

        if event.subject:
            item['subject'] = event.subject

        return item
