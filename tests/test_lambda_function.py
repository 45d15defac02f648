"""Integration tests for Lambda handler."""
import json
import logging
import os
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest

from lambda_function import JsonFormatter, lambda_handler, setup_logging
from processor.models import (
    CalendarContext,
    EventDraft,
    ImportResult,
    ParsedCalendar,
    ProcessedBatch,
    RawAttribute,
    RawEvent,
    SyncResult,
)


@pytest.fixture
def mock_env():
    """Set up environment variables for testing."""
    env_vars = {
        'ICS_URL': 'https://calendar.example.com/team.ics',
        'TABLE_NAME': 'test-calendar-events',
        'CALENDAR_ID': 'work',
        'DEFAULT_TIMEZONE': 'Europe/Paris',
        'LOG_LEVEL': 'INFO',
        'TIMEOUT_SECONDS': '15'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def parsed_calendar():
    """Create a parsed calendar with two events."""
    return ParsedCalendar(
        context=CalendarContext(timezones=('Europe/Paris',)),
        events=[
            RawEvent('evt-1', {'DTSTART': RawAttribute('20240115T090000')}),
            RawEvent('', {'DTSTART': RawAttribute('20240116T090000')}),
        ]
    )


@pytest.fixture
def processed_batch():
    """Create the batch the processor would return."""
    return ProcessedBatch(
        drafts=[
            EventDraft(
                anchor='evt-1',
                notes='evt-1',
                start=datetime(2024, 1, 15, 8, tzinfo=timezone.utc)
            )
        ],
        rejected=[
            ImportResult(anchor='', status='rejected',
                         error='MissingAnchorError: Source event has no anchor token')
        ]
    )


class TestLambdaHandler:
    """Test cases for Lambda handler."""

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.EventProcessor')
    @patch('lambda_function.IcsFeedFetcher')
    def test_successful_import(
        self,
        mock_fetcher_class,
        mock_processor_class,
        mock_store_class,
        mock_env,
        mock_context,
        parsed_calendar,
        processed_batch
    ):
        """Test successful end-to-end import with a partial rejection."""
        mock_fetcher_class.return_value.fetch_calendar.return_value = parsed_calendar
        mock_processor_class.return_value.process_events.return_value = processed_batch

        sync_result = SyncResult(
            created=1,
            updated=0,
            failed=0,
            results=[ImportResult(anchor='evt-1', status='created', record_id='rec-1')],
            errors=[]
        )

        with patch('lambda_function.EventReconciler') as mock_reconciler_class:
            mock_reconciler_class.return_value.sync_events.return_value = sync_result
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['message'] == 'Import completed'
        assert body['statistics']['raw_events_fetched'] == 2
        assert body['statistics']['valid_events_mapped'] == 1
        assert body['statistics']['events_rejected'] == 1
        assert body['statistics']['events_created'] == 1
        assert body['statistics']['events_updated'] == 0
        assert body['statistics']['events_failed'] == 0
        assert 'duration_seconds' in body['statistics']
        assert body['results'] == [
            {'anchor': '', 'status': 'rejected', 'record_id': None,
             'error': 'MissingAnchorError: Source event has no anchor token'},
            {'anchor': 'evt-1', 'status': 'created', 'record_id': 'rec-1',
             'error': None},
        ]

        # Verify component wiring
        mock_fetcher_class.assert_called_once_with(timeout=15)
        mock_processor_class.assert_called_once_with(default_timezone='Europe/Paris')
        mock_store_class.assert_called_once_with(
            table_name='test-calendar-events', calendar_id='work'
        )
        mock_fetcher_class.return_value.fetch_calendar.assert_called_once_with(
            'https://calendar.example.com/team.ics'
        )
        mock_processor_class.return_value.process_events.assert_called_once_with(
            parsed_calendar.events, parsed_calendar.context
        )
        mock_reconciler_class.return_value.sync_events.assert_called_once_with(
            processed_batch.drafts
        )

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.IcsFeedFetcher')
    def test_payload_url_overrides_environment(
        self,
        mock_fetcher_class,
        mock_store_class,
        mock_env,
        mock_context
    ):
        """Test that ics_url in the payload takes precedence."""
        mock_fetcher_class.return_value.fetch_calendar.return_value = ParsedCalendar(
            context=CalendarContext(), events=[]
        )

        response = lambda_handler(
            {'ics_url': 'https://other.example.com/feed.ics'}, mock_context
        )

        assert response['statusCode'] == 200
        mock_fetcher_class.return_value.fetch_calendar.assert_called_once_with(
            'https://other.example.com/feed.ics'
        )

    def test_missing_feed_url(self, mock_context):
        """Test that a missing feed URL is a configuration error."""
        with patch.dict(os.environ, {'ICS_URL': ''}):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['error_type'] == 'ConfigurationError'

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.IcsFeedFetcher')
    def test_invalid_default_timezone(self, mock_fetcher_class, mock_store_class,
                                      mock_env, mock_context):
        """Test that a mistyped default zone stops the import before fetching."""
        with patch.dict(os.environ, {'DEFAULT_TIMEZONE': 'Asia/Shangai'}):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['error_type'] == 'ConfigurationError'
        assert 'Asia/Shangai' in body['error']
        mock_fetcher_class.assert_not_called()
        mock_store_class.assert_not_called()

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.EventProcessor')
    @patch('lambda_function.IcsFeedFetcher')
    def test_feed_fetch_failure(
        self,
        mock_fetcher_class,
        mock_processor_class,
        mock_store_class,
        mock_env,
        mock_context
    ):
        """Test error handling for feed fetch failures."""
        mock_fetcher_class.return_value.fetch_calendar.side_effect = Exception('Network error')

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Failed to fetch calendar feed'
        assert 'Network error' in body['error']
        assert body['error_type'] == 'Exception'
        assert 'duration_seconds' in body

        assert not mock_processor_class.return_value.process_events.called

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.IcsFeedFetcher')
    def test_store_failure_reported_per_event(
        self,
        mock_fetcher_class,
        mock_store_class,
        mock_env,
        mock_context,
        parsed_calendar
    ):
        """Test that store errors become failed results, not a failed run."""
        mock_fetcher_class.return_value.fetch_calendar.return_value = parsed_calendar
        mock_store_class.return_value.find_records.side_effect = Exception('DynamoDB error')

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['statistics']['events_failed'] == 1
        assert body['statistics']['events_rejected'] == 1
        failed = [r for r in body['results'] if r['status'] == 'failed']
        assert failed[0]['anchor'] == 'evt-1'
        assert 'DynamoDB error' in failed[0]['error']
        assert len(body['errors']) == 1

    @patch('lambda_function.DynamoDBCalendarStore')
    @patch('lambda_function.IcsFeedFetcher')
    @patch('lambda_function.setup_logging')
    def test_logging_output(
        self,
        mock_setup_logging,
        mock_fetcher_class,
        mock_store_class,
        mock_env,
        mock_context,
        caplog
    ):
        """Test that logging output is generated correctly."""
        mock_fetcher_class.return_value.fetch_calendar.return_value = ParsedCalendar(
            context=CalendarContext(), events=[]
        )

        with caplog.at_level(logging.INFO, logger='lambda_function'):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        log_messages = [record.message for record in caplog.records]
        assert any('Lambda execution started' in msg for msg in log_messages)
        assert any('Fetching calendar feed' in msg for msg in log_messages)
        assert any('Mapping source events' in msg for msg in log_messages)
        assert any('Reconciling events with calendar store' in msg for msg in log_messages)
        assert any('Lambda execution completed successfully' in msg for msg in log_messages)


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        """Test logging setup with default INFO level."""
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test logging setup with DEBUG level."""
        setup_logging('DEBUG')
        assert logging.getLogger().level == logging.DEBUG

    def test_json_formatter(self):
        """Test that log records are rendered as JSON."""
        record = logging.LogRecord(
            'importer', logging.WARNING, __file__, 1, 'Rejected event %s', ('evt-1',), None
        )

        data = json.loads(JsonFormatter().format(record))

        assert data['level'] == 'WARNING'
        assert data['message'] == 'Rejected event evt-1'
        assert data['logger'] == 'importer'
