"""Event processor for mapping a batch of source events into drafts."""
import logging
from typing import List

from processor.exceptions import EventImportError
from processor.field_mapper import FieldMapper
from processor.models import (
    CalendarContext,
    EventDraft,
    ImportResult,
    ProcessedBatch,
    RawEvent,
)
from processor.timezones import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for validating and normalizing source events."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        """
        Initialize the event processor.

        Args:
            default_timezone: Zone for values with no zone information
        """
        self.mapper = FieldMapper(default_timezone=default_timezone)

    def process_events(
        self,
        raw_events: List[RawEvent],
        context: CalendarContext
    ) -> ProcessedBatch:
        """
        Map raw source events to drafts, skipping and reporting failures.

        A rejected event never stops processing of the remaining events.

        Args:
            raw_events: Source events in feed order
            context: Declared timezones of the source calendar

        Returns:
            ProcessedBatch with drafts and rejected events
        """
        drafts: List[EventDraft] = []
        rejected: List[ImportResult] = []

        for event in raw_events:
            try:
                drafts.append(self.mapper.map_event(event, context))
            except EventImportError as e:
                logger.warning(
                    f"Rejected event '{event.anchor}': "
                    f"{type(e).__name__}: {e}"
                )
                rejected.append(ImportResult(
                    anchor=event.anchor,
                    status='rejected',
                    error=f"{type(e).__name__}: {e}"
                ))
            except Exception as e:
                logger.warning(
                    f"Failed to process event '{event.anchor}': {e}",
                    exc_info=True
                )
                rejected.append(ImportResult(
                    anchor=event.anchor,
                    status='rejected',
                    error=f"{type(e).__name__}: {e}"
                ))

        logger.info(
            f"Processed {len(drafts)} valid events out of "
            f"{len(raw_events)} total events"
        )
        return ProcessedBatch(drafts=drafts, rejected=rejected)
