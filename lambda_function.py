"""AWS Lambda handler for importing schedule documents into the planner."""
import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, Optional

from documents.text_extractor import DocumentTextExtractor
from planner.preview import build_preview
from planner.schedule_parser import parse_schedule, parse_schedule_now
from storage.document_archive import DocumentArchive
from storage.dynamodb_manager import DynamoDBManager


NOTHING_RECOGNIZED_HINT = (
    'No schedule entries could be recognized. Add the sessions manually in '
    'the calendar or keep the document for reference.'
)


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_anchor(value: Optional[str]) -> Optional[datetime]:
    """
    Parse the optional anchor date of a request.

    Args:
        value: ISO 8601 date or datetime string, or None

    Returns:
        Anchor datetime or None when the request carries no anchor

    Raises:
        ValueError: If the value is not a valid ISO 8601 date
    """
    if value is None or value == '':
        return None
    return datetime.fromisoformat(value)


def parse_flag(value: Any) -> bool:
    """
    Interpret a boolean request flag.

    Args:
        value: JSON boolean, or a string such as "true" or "false"

    Returns:
        True only for a true boolean or a truthy string
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return False


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'body': json.dumps(body, ensure_ascii=False)
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for schedule import.

    The request carries either raw ``text`` or a ``document`` path/URL, an
    optional ISO ``anchor`` date and a ``persist`` flag.

    Args:
        event: Request payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and a preview of recognized events
    """
    table_name = os.environ.get('TABLE_NAME', 'planner-events')
    documents_bucket = os.environ.get('DOCUMENTS_BUCKET', '')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    preview_limit = int(os.environ.get('PREVIEW_LIMIT', '20'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    text = event.get('text')
    document_ref = event.get('document')
    persist = parse_flag(event.get('persist'))

    logger.info(
        "Schedule import started",
        extra={
            'table_name': table_name,
            'has_text': bool(text),
            'document': document_ref,
            'persist': persist
        }
    )

    if not text and not document_ref:
        logger.warning("Request contains neither text nor document")
        return _response(400, {
            'message': 'Request must include text or document',
            'duration_seconds': round(time.time() - start_time, 2)
        })

    try:
        anchor = parse_anchor(event.get('anchor'))
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid anchor date: {event.get('anchor')!r}")
        return _response(400, {
            'message': 'Invalid anchor date',
            'error': str(e),
            'duration_seconds': round(time.time() - start_time, 2)
        })

    try:
        document = None
        if not text:
            try:
                logger.info("Extracting text from document")
                extractor = DocumentTextExtractor(timeout=timeout_seconds)
                document, text = extractor.extract(document_ref)
            except Exception as e:
                logger.error(
                    f"Failed to extract text from document: {str(e)}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                return _response(500, {
                    'message': 'Failed to extract text from document',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'duration_seconds': round(time.time() - start_time, 2)
                })

        logger.info("Parsing schedule text")
        if anchor is None:
            events = parse_schedule_now(text)
        else:
            events = parse_schedule(text, anchor)
        preview = build_preview(events, limit=preview_limit)

        saved_event_ids = []
        save_errors = []
        document_key = None
        if persist:
            try:
                if events:
                    logger.info("Saving events to DynamoDB")
                    save_result = DynamoDBManager(table_name=table_name).save_events(events)
                    saved_event_ids = save_result.event_ids
                    save_errors = save_result.errors
                if document is not None and documents_bucket:
                    logger.info("Archiving source document")
                    document_key = DocumentArchive(bucket=documents_bucket).save_document(document)
            except Exception as e:
                logger.error(
                    f"Error saving imported schedule: {str(e)}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                return _response(500, {
                    'message': 'Failed to save events',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'preview': preview,
                    'duration_seconds': round(time.time() - start_time, 2)
                })

        duration = time.time() - start_time

        logger.info(
            "Schedule import completed",
            extra={
                'duration_seconds': round(duration, 2),
                'events_recognized': len(events),
                'events_saved': len(saved_event_ids),
                'errors': save_errors
            }
        )

        body = {
            'message': 'Schedule parsed successfully' if events else 'No schedule entries recognized',
            'preview': preview,
            'statistics': {
                'events_recognized': len(events),
                'events_saved': len(saved_event_ids),
                'duration_seconds': round(duration, 2)
            },
            'event_ids': saved_event_ids,
            'document_key': document_key,
            'errors': save_errors
        }
        if not events:
            body['hint'] = NOTHING_RECOGNIZED_HINT

        return _response(200, body)

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Schedule import failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _response(500, {
            'message': 'Schedule import failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
