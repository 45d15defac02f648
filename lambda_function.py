"""AWS Lambda handler for iCalendar feed import."""
import json
import logging
import os
import time
from typing import Dict, Any

from feed.ics_feed import IcsFeedFetcher
from processor.event_processor import EventProcessor
from processor.timezones import DEFAULT_TIMEZONE
from storage.dynamodb_store import DynamoDBCalendarStore
from storage.reconciler import EventReconciler


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

        return json.dumps(log_data)


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


def _error_response(status_code: int, message: str, error: Exception,
                    start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': status_code,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Import an iCalendar feed into the calendar table.

    Args:
        event: Invocation payload, may carry ``ics_url``
        context: Lambda context object

    Returns:
        Response dict with statusCode, statistics and per-event results
    """
    ics_url = (event or {}).get('ics_url') or os.environ.get('ICS_URL', '')
    table_name = os.environ.get('TABLE_NAME', 'calendar-events')
    calendar_id = os.environ.get('CALENDAR_ID', 'default')
    default_timezone = os.environ.get('DEFAULT_TIMEZONE', DEFAULT_TIMEZONE)
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={
            'table_name': table_name,
            'calendar_id': calendar_id,
            'default_timezone': default_timezone,
            'timeout_seconds': timeout_seconds
        }
    )

    if not ics_url:
        logger.error("No calendar feed URL configured")
        return {
            'statusCode': 400,
            'body': json.dumps({
                'message': 'No calendar feed URL configured',
                'error_type': 'ConfigurationError'
            })
        }

    try:
        processor = EventProcessor(default_timezone=default_timezone)
    except ValueError as e:
        logger.error(f"Invalid configuration: {str(e)}")
        return {
            'statusCode': 400,
            'body': json.dumps({
                'message': 'Invalid default timezone',
                'error': str(e),
                'error_type': 'ConfigurationError'
            })
        }

    try:
        fetcher = IcsFeedFetcher(timeout=timeout_seconds)
        store = DynamoDBCalendarStore(table_name=table_name, calendar_id=calendar_id)
        reconciler = EventReconciler(store)

        try:
            logger.info("Fetching calendar feed")
            calendar = fetcher.fetch_calendar(ics_url)
            logger.info(f"Fetched {len(calendar.events)} raw events from feed")
        except Exception as e:
            logger.error(
                f"Failed to fetch calendar feed: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response(500, 'Failed to fetch calendar feed', e, start_time)

        logger.info("Mapping source events")
        batch = processor.process_events(calendar.events, calendar.context)

        logger.info("Reconciling events with calendar store")
        sync_result = reconciler.sync_events(batch.drafts)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_created': sync_result.created,
                'events_updated': sync_result.updated,
                'events_rejected': len(batch.rejected),
                'events_failed': sync_result.failed
            }
        )

        results = batch.rejected + sync_result.results
        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Import completed',
                'statistics': {
                    'raw_events_fetched': len(calendar.events),
                    'valid_events_mapped': len(batch.drafts),
                    'events_rejected': len(batch.rejected),
                    'events_created': sync_result.created,
                    'events_updated': sync_result.updated,
                    'events_failed': sync_result.failed,
                    'duration_seconds': round(duration, 2)
                },
                'results': [result.to_dict() for result in results],
                'errors': sync_result.errors
            })
        }

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _error_response(500, 'Import failed', e, start_time)
