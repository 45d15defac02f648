"""Mapping of raw source events onto normalized event drafts."""
import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from processor.datetime_resolver import resolve_datetime
from processor.exceptions import MissingAnchorError, UnresolvableStartError
from processor.geo_resolver import resolve_geo
from processor.models import CalendarContext, EventDraft, RawEvent
from processor.timezones import DEFAULT_TIMEZONE, resolve_zone

logger = logging.getLogger(__name__)

# Escaped line break left behind by some feed generators
LINE_BREAK_ARTIFACT = '\\r\\n'

# Schemes kept on the URL field
URL_SCHEMES = {'http', 'https', 'mailto', 'tel', 'webcal', 'ftp'}


class FieldMapper:
    """Builds EventDraft objects from raw source events."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        """
        Initialize the field mapper.

        Args:
            default_timezone: Zone for values with no zone information

        Raises:
            ValueError: If default_timezone does not name a known zone
        """
        if resolve_zone(default_timezone) is None:
            raise ValueError(f"Unknown default timezone: {default_timezone}")
        self.default_timezone = default_timezone

    def map_event(self, event: RawEvent, context: CalendarContext) -> EventDraft:
        """
        Map a raw source event to an EventDraft.

        Args:
            event: Raw source event
            context: Declared timezones of the source calendar

        Returns:
            EventDraft with every field that could be resolved

        Raises:
            MissingAnchorError: If the event has no anchor token
            UnresolvableStartError: If neither DTSTART nor DTSTAMP resolves
        """
        anchor = event.anchor or ''
        if not anchor.strip():
            raise MissingAnchorError("Source event has no anchor token")

        start = self.start_time(event, context)

        description = self._text(event, 'DESCRIPTION')
        if description:
            notes = f"{anchor}\n{description}"
        else:
            notes = anchor

        return EventDraft(
            anchor=anchor,
            notes=notes,
            start=start,
            title=self._text(event, 'SUMMARY'),
            location=self._text(event, 'LOCATION'),
            url=self._url(event),
            end=self._datetime(event, 'DTEND', context),
            geo=self._geo(event)
        )

    def start_time(self, event: RawEvent, context: CalendarContext) -> datetime:
        """
        Resolve the start instant, preferring DTSTART over DTSTAMP.

        Raises:
            UnresolvableStartError: If neither attribute resolves
        """
        for name in ('DTSTART', 'DTSTAMP'):
            start = self._datetime(event, name, context)
            if start is not None:
                return start

        raise UnresolvableStartError(
            f"Cannot resolve start time for event {event.anchor}",
            anchor=event.anchor
        )

    def _datetime(
        self,
        event: RawEvent,
        name: str,
        context: CalendarContext
    ) -> Optional[datetime]:
        attribute = event.component(name)
        if attribute is None:
            return None
        return resolve_datetime(attribute, context, self.default_timezone)

    def _text(self, event: RawEvent, name: str) -> Optional[str]:
        attribute = event.component(name)
        if attribute is None:
            return None
        return attribute.value.replace(LINE_BREAK_ARTIFACT, '')

    def _url(self, event: RawEvent) -> Optional[str]:
        attribute = event.component('URL')
        if attribute is None:
            return None

        link = attribute.value.strip()
        if not is_valid_url(link):
            logger.debug(f"Dropping invalid URL for event {event.anchor}: {link}")
            return None
        return link

    def _geo(self, event: RawEvent):
        attribute = event.component('GEO')
        if attribute is None:
            return None
        return resolve_geo(attribute)


def is_valid_url(link: str) -> bool:
    """Check that a string is an absolute URL with an allowed scheme."""
    if not link or any(ch.isspace() for ch in link):
        return False

    try:
        parsed = urlparse(link)
    except ValueError:
        return False

    if parsed.scheme.lower() not in URL_SCHEMES:
        return False
    # mailto:, tel: and similar carry no network location
    return bool(parsed.netloc or parsed.path)
