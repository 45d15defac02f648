"""DynamoDB-backed calendar store."""
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import GeoPoint, StoreRecord
from storage.calendar_store import CalendarStore

logger = logging.getLogger(__name__)


def _timestamp(value: datetime) -> Decimal:
    return Decimal(str(value.timestamp()))


class DynamoDBCalendarStore(CalendarStore):
    """Calendar store keeping one item per record in a DynamoDB table."""

    def __init__(
        self,
        table_name: str,
        calendar_id: str = 'default',
        region_name: Optional[str] = None
    ):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            calendar_id: Destination calendar for new records
            region_name: AWS region, defaults to the environment's region
        """
        self.table_name = table_name
        self.calendar_id = calendar_id
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(
            f"Initialized DynamoDBCalendarStore for table: {table_name} "
            f"(calendar: {calendar_id})"
        )

    def find_records(
        self,
        window_start: datetime,
        window_end: datetime
    ) -> List[StoreRecord]:
        """
        Scan for records overlapping [window_start, window_end).

        Args:
            window_start: Inclusive window start
            window_end: Exclusive window end

        Returns:
            List of matching StoreRecord objects
        """
        filter_expression = (
            Attr('calendar_id').eq(self.calendar_id) &
            Attr('start_ts').lt(_timestamp(window_end)) &
            Attr('end_ts').gte(_timestamp(window_start))
        )

        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            # Handle pagination
            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise

        records = [self._item_to_record(item) for item in items]
        logger.debug(
            f"Found {len(records)} records between "
            f"{window_start.isoformat()} and {window_end.isoformat()}"
        )
        return records

    def create_record(self) -> StoreRecord:
        return StoreRecord(record_id=uuid.uuid4().hex, calendar_id=self.calendar_id)

    def save(self, record: StoreRecord) -> None:
        """
        Write a record to DynamoDB.

        Raises:
            ValueError: If the record has no start time
            ClientError: If the write fails
        """
        if record.start is None:
            raise ValueError(f"Record {record.record_id} has no start time")

        try:
            self.table.put_item(Item=self._record_to_item(record))
        except ClientError as e:
            logger.error(f"Error writing record {record.record_id}: {e}")
            raise

    def _item_to_record(self, item: dict) -> StoreRecord:
        """
        Convert DynamoDB item to StoreRecord object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            StoreRecord object
        """
        geo = None
        if 'latitude' in item and 'longitude' in item:
            geo = GeoPoint(
                latitude=float(item['latitude']),
                longitude=float(item['longitude'])
            )

        end = item.get('end_at')

        return StoreRecord(
            record_id=item['record_id'],
            calendar_id=item['calendar_id'],
            title=item.get('title'),
            notes=item.get('notes'),
            location=item.get('location'),
            url=item.get('url'),
            start=datetime.fromisoformat(item['start_at']),
            end=datetime.fromisoformat(end) if end else None,
            geo=geo
        )

    def _record_to_item(self, record: StoreRecord) -> dict:
        """
        Convert StoreRecord object to DynamoDB item.

        Args:
            record: StoreRecord object

        Returns:
            DynamoDB item dictionary
        """
        end = record.end or record.start
        item = {
            'record_id': record.record_id,
            'calendar_id': record.calendar_id,
            'start_at': record.start.isoformat(),
            'start_ts': _timestamp(record.start),
            'end_ts': _timestamp(end)
        }

        # Add optional fields if present
        if record.end:
            item['end_at'] = record.end.isoformat()
        for name in ('title', 'notes', 'location', 'url'):
            value = getattr(record, name)
            if value is not None:
                item[name] = value
        if record.geo:
            item['latitude'] = Decimal(str(record.geo.latitude))
            item['longitude'] = Decimal(str(record.geo.longitude))

        return item
