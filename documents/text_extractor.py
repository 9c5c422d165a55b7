"""Text extraction from uploaded schedule documents."""
import io
import logging
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple
from urllib.parse import urlparse

import pdfplumber
import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


PDF = 'application/pdf'
HTML = 'text/html'
PLAIN_TEXT = 'text/plain'


class DocumentExtractionError(Exception):
    """Raised when a document cannot be loaded or yields no text."""


@dataclass
class SourceDocument:
    """Schedule document as uploaded by the user."""
    name: str
    data: bytes
    media_type: str


class DocumentTextExtractor:
    """Loads schedule documents and turns them into plain text."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, timeout: int = 30):
        """
        Initialize the text extractor.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def extract(self, path_or_url: str) -> Tuple[SourceDocument, str]:
        """
        Load a document and extract its text.

        Args:
            path_or_url: Local file path or http(s) URL

        Returns:
            Tuple of (SourceDocument, extracted text)

        Raises:
            DocumentExtractionError: If the document cannot be read
        """
        document = self.load_document(path_or_url)
        text = self.extract_text(document)
        logger.info(
            f"Extracted {len(text)} characters from '{document.name}' "
            f"({document.media_type})"
        )
        return document, text

    def load_document(self, path_or_url: str) -> SourceDocument:
        """
        Load a document from a local path or an http(s) URL.

        Args:
            path_or_url: Local file path or http(s) URL

        Returns:
            SourceDocument with the raw bytes

        Raises:
            DocumentExtractionError: If the file is missing or the download fails
        """
        if path_or_url.startswith('http://') or path_or_url.startswith('https://'):
            return self._download(path_or_url)

        path = Path(path_or_url)
        if not path.is_file():
            raise DocumentExtractionError(f"File not found: {path}")

        return SourceDocument(
            name=path.name,
            data=path.read_bytes(),
            media_type=self._guess_media_type(path.name)
        )

    def extract_text(self, document: SourceDocument) -> str:
        """
        Extract plain text from a loaded document.

        Args:
            document: SourceDocument to read

        Returns:
            Extracted text with lines separated by newlines

        Raises:
            DocumentExtractionError: If the format is unsupported, the
                document is corrupt, or no text could be found
        """
        if document.media_type == PDF:
            text = self._extract_pdf_text(document)
        elif document.media_type == HTML:
            text = self._extract_html_text(document)
        elif document.media_type == PLAIN_TEXT:
            text = document.data.decode('utf-8', errors='replace')
        else:
            raise DocumentExtractionError(
                f"Unsupported document type '{document.media_type}' for '{document.name}'"
            )

        if not text.strip():
            raise DocumentExtractionError(f"No text found in '{document.name}'")

        return text

    def _download(self, url: str) -> SourceDocument:
        """
        Download a document with retry logic.

        Args:
            url: http(s) URL of the document

        Returns:
            SourceDocument with the response body

        Raises:
            DocumentExtractionError: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(f"Downloading document (attempt {attempt + 1}/{self.MAX_RETRIES})")
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
                break

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Download failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} download attempts failed. Last error: {e}"
                    )
                    raise DocumentExtractionError(f"Failed to download {url}: {e}") from e

        name = Path(urlparse(url).path).name or 'document'
        content_type = response.headers.get('Content-Type', '').split(';')[0].strip()
        media_type = content_type if content_type in (PDF, HTML, PLAIN_TEXT) else self._guess_media_type(name)

        return SourceDocument(name=name, data=response.content, media_type=media_type)

    def _extract_pdf_text(self, document: SourceDocument) -> str:
        """Extract text from every PDF page, one chunk per page."""
        chunks = []
        try:
            with pdfplumber.open(io.BytesIO(document.data)) as pdf:
                for page in pdf.pages:
                    chunks.append(page.extract_text() or '')
        except Exception as e:
            raise DocumentExtractionError(f"Cannot read PDF '{document.name}': {e}") from e

        logger.debug(f"Read {len(chunks)} pages from '{document.name}'")
        return '\n'.join(chunks)

    def _extract_html_text(self, document: SourceDocument) -> str:
        """Extract visible text from an HTML document, one block per line."""
        try:
            markup = document.data.decode('utf-8')
        except UnicodeDecodeError:
            # Let BeautifulSoup detect the encoding
            markup = document.data
        soup = BeautifulSoup(markup, 'html.parser')
        for element in soup(['script', 'style']):
            element.decompose()
        return soup.get_text('\n')

    def _guess_media_type(self, name: str) -> str:
        media_type, _ = mimetypes.guess_type(name)
        return media_type or 'application/octet-stream'
