"""Find-or-create reconciliation of event drafts against a calendar store."""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from processor.models import EventDraft, ImportResult, StoreRecord, SyncResult
from storage.calendar_store import CalendarStore

logger = logging.getLogger(__name__)


class EventReconciler:
    """Matches drafts to stored records by the anchor embedded in their notes."""

    # Width of the start-time window used to look up existing records
    WINDOW_EPSILON = timedelta(seconds=0.1)

    def __init__(self, store: CalendarStore):
        """
        Initialize the reconciler.

        Args:
            store: Calendar store to query and write
        """
        self.store = store

    def find_match(self, draft: EventDraft) -> Optional[StoreRecord]:
        """
        Find the stored record previously imported from the same source event.

        Args:
            draft: Event draft to match

        Returns:
            First record starting at the draft's start whose notes contain
            the anchor, or None
        """
        candidates = self.store.find_records(
            draft.start, draft.start + self.WINDOW_EPSILON
        )
        for record in candidates:
            if record.notes and draft.anchor in record.notes:
                return record
        return None

    def reconcile(self, draft: EventDraft) -> StoreRecord:
        """
        Update the matching record, or create one, from a draft.

        Store errors propagate unchanged.

        Args:
            draft: Event draft to write

        Returns:
            The saved StoreRecord
        """
        record, _ = self._reconcile(draft)
        return record

    def _reconcile(self, draft: EventDraft) -> Tuple[StoreRecord, bool]:
        record = self.find_match(draft)
        created = record is None
        if created:
            record = self.store.create_record()

        self._apply(draft, record)
        self.store.save(record)

        logger.debug(
            f"{'Created' if created else 'Updated'} record {record.record_id} "
            f"for event {draft.anchor}"
        )
        return record, created

    def _apply(self, draft: EventDraft, record: StoreRecord) -> None:
        """Overwrite record fields with the values present on the draft."""
        if draft.title is not None:
            record.title = draft.title
        record.notes = draft.notes
        if draft.location is not None:
            record.location = draft.location
        if draft.url is not None:
            record.url = draft.url
        record.start = draft.start
        # An existing end time is kept when the draft has none
        if draft.end is not None:
            record.end = draft.end
        if draft.geo is not None:
            record.geo = draft.geo

    def sync_events(self, drafts: List[EventDraft]) -> SyncResult:
        """
        Reconcile a batch of drafts in order.

        A store error aborts only the event being reconciled.

        Args:
            drafts: Event drafts from the processor

        Returns:
            SyncResult with counts and per-event results
        """
        logger.info(f"Starting sync process with {len(drafts)} events")
        results: List[ImportResult] = []
        errors = []

        for draft in drafts:
            try:
                record, created = self._reconcile(draft)
            except Exception as e:
                error_msg = f"Error reconciling event {draft.anchor}: {e}"
                logger.error(error_msg, exc_info=True)
                errors.append(error_msg)
                results.append(ImportResult(
                    anchor=draft.anchor,
                    status='failed',
                    error=f"{type(e).__name__}: {e}"
                ))
                continue

            results.append(ImportResult(
                anchor=draft.anchor,
                status='created' if created else 'updated',
                record_id=record.record_id
            ))

        created_count = sum(1 for r in results if r.status == 'created')
        updated_count = sum(1 for r in results if r.status == 'updated')
        failed_count = len(results) - created_count - updated_count

        logger.info(
            f"Sync complete: {created_count} created, {updated_count} updated, "
            f"{failed_count} failed"
        )

        return SyncResult(
            created=created_count,
            updated=updated_count,
            failed=failed_count,
            results=results,
            errors=errors
        )
