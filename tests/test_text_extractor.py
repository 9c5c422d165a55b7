"""Unit tests for DocumentTextExtractor."""
from unittest.mock import MagicMock, Mock, patch

import pytest
import responses

from documents.text_extractor import (
    DocumentExtractionError,
    DocumentTextExtractor,
    SourceDocument,
)

SCHEDULE_URL = "https://example.com/files/schedule.html"


def make_pdf_mock(mock_open, page_texts):
    """Make pdfplumber.open yield a PDF with the given page texts."""
    pages = []
    for text in page_texts:
        page = Mock()
        page.extract_text.return_value = text
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    mock_open.return_value.__enter__.return_value = pdf
    return pdf


class TestDocumentTextExtractor:
    """Test cases for DocumentTextExtractor class."""

    def test_plain_text_file(self, tmp_path):
        """Test extracting text from a local .txt file."""
        path = tmp_path / "schedule.txt"
        path.write_text("Пн 09:00-10:30 Анатомия\nВт 11:00-12:30 Химия\n", encoding='utf-8')

        document, text = DocumentTextExtractor().extract(str(path))

        assert document.name == "schedule.txt"
        assert document.media_type == "text/plain"
        assert text.splitlines() == ["Пн 09:00-10:30 Анатомия", "Вт 11:00-12:30 Химия"]

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises DocumentExtractionError."""
        with pytest.raises(DocumentExtractionError, match="File not found"):
            DocumentTextExtractor().load_document(str(tmp_path / "missing.pdf"))

    @patch('documents.text_extractor.pdfplumber.open')
    def test_pdf_pages_joined_by_newline(self, mock_open):
        """Test that PDF pages are extracted one chunk per page."""
        make_pdf_mock(mock_open, ["Пн 09:00-10:30 Анатомия", None, "Ср 12:00-13:00 Латынь"])
        document = SourceDocument(name="schedule.pdf", data=b"%PDF-1.4", media_type="application/pdf")

        text = DocumentTextExtractor().extract_text(document)

        assert text == "Пн 09:00-10:30 Анатомия\n\nСр 12:00-13:00 Латынь"

    @patch('documents.text_extractor.pdfplumber.open')
    def test_corrupt_pdf(self, mock_open):
        """Test that an unreadable PDF raises DocumentExtractionError."""
        mock_open.side_effect = ValueError("broken xref table")
        document = SourceDocument(name="broken.pdf", data=b"garbage", media_type="application/pdf")

        with pytest.raises(DocumentExtractionError, match="Cannot read PDF"):
            DocumentTextExtractor().extract_text(document)

    @patch('documents.text_extractor.pdfplumber.open')
    def test_pdf_without_text(self, mock_open):
        """Test that a scanned PDF with no text layer is reported."""
        make_pdf_mock(mock_open, [None, "  "])
        document = SourceDocument(name="scan.pdf", data=b"%PDF-1.4", media_type="application/pdf")

        with pytest.raises(DocumentExtractionError, match="No text found"):
            DocumentTextExtractor().extract_text(document)

    def test_html_document(self):
        """Test that HTML blocks become separate lines."""
        html = b"""
        <html>
            <head><style>td { color: red; }</style></head>
            <body>
                <table>
                    <tr><td>Mon 09:00-10:30</td><td>Anatomy</td></tr>
                    <tr><td>Tue 11:00-12:00</td><td>Chemistry</td></tr>
                </table>
            </body>
        </html>
        """
        document = SourceDocument(name="schedule.html", data=html, media_type="text/html")

        text = DocumentTextExtractor().extract_text(document)
        lines = [line.strip() for line in text.splitlines() if line.strip()]

        assert lines == ["Mon 09:00-10:30", "Anatomy", "Tue 11:00-12:00", "Chemistry"]

    def test_unsupported_type(self):
        """Test that unknown document types are rejected."""
        document = SourceDocument(name="schedule.docx", data=b"PK", media_type="application/zip")

        with pytest.raises(DocumentExtractionError, match="Unsupported document type"):
            DocumentTextExtractor().extract_text(document)

    @responses.activate
    def test_download_success(self):
        """Test downloading a document over HTTP."""
        responses.add(
            responses.GET,
            SCHEDULE_URL,
            body="<p>Пт 10:00-11:00 Физиология</p>",
            status=200,
            content_type="text/html"
        )

        document, text = DocumentTextExtractor(timeout=10).extract(SCHEDULE_URL)

        assert document.name == "schedule.html"
        assert document.media_type == "text/html"
        assert text.strip() == "Пт 10:00-11:00 Физиология"

    @responses.activate
    @patch('documents.text_extractor.time.sleep')
    def test_download_with_retry_success(self, mock_sleep):
        """Test retry logic succeeds after initial failures."""
        responses.add(responses.GET, SCHEDULE_URL, body="Server Error", status=500)
        responses.add(responses.GET, SCHEDULE_URL, body="Server Error", status=500)
        responses.add(
            responses.GET,
            SCHEDULE_URL,
            body="Ср 08:00-09:00 Латынь",
            status=200,
            content_type="text/plain"
        )

        document = DocumentTextExtractor().load_document(SCHEDULE_URL)

        assert document.data.decode('utf-8') == "Ср 08:00-09:00 Латынь"
        assert document.media_type == "text/plain"
        assert len(responses.calls) == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2]

    @responses.activate
    @patch('documents.text_extractor.time.sleep')
    def test_download_all_retries_fail(self, mock_sleep):
        """Test that DocumentExtractionError is raised when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, SCHEDULE_URL, body="Server Error", status=500)

        with pytest.raises(DocumentExtractionError, match="Failed to download"):
            DocumentTextExtractor().load_document(SCHEDULE_URL)

        assert len(responses.calls) == 3
