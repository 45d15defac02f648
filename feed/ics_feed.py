"""Fetching and parsing of iCalendar feeds."""
import logging
import time
from typing import Dict, List, Union

import requests
from icalendar import Calendar

from processor.models import CalendarContext, ParsedCalendar, RawAttribute, RawEvent

logger = logging.getLogger(__name__)


class IcsFeedFetcher:
    """Downloads an .ics feed and splits it into raw events."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, timeout: int = 30):
        """
        Initialize the feed fetcher.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def fetch_calendar(self, url: str) -> ParsedCalendar:
        """
        Fetch and parse a calendar feed.

        Args:
            url: Address of the .ics feed

        Returns:
            ParsedCalendar with declared timezones and raw events
        """
        logger.info(f"Fetching calendar feed from {url}")
        ics_data = self._fetch_ics(url)
        calendar = parse_calendar(ics_data)
        logger.info(
            f"Successfully parsed {len(calendar.events)} events and "
            f"{len(calendar.context.timezones)} declared timezones"
        )
        return calendar

    def _fetch_ics(self, url: str) -> bytes:
        """
        Fetch raw feed bytes with retry logic.

        The body is left undecoded; iCalendar is UTF-8 regardless of the
        charset (often absent) in the Content-Type header.

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"Fetching calendar feed (attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.content

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    # Calculate exponential backoff delay
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise


def _raw_attribute(value) -> RawAttribute:
    """Convert an icalendar property value back into its text form."""
    params = {
        str(key).upper(): str(param)
        for key, param in (getattr(value, 'params', None) or {}).items()
    }

    if isinstance(value, str):
        text = str(value)
    else:
        text = value.to_ical()
        if isinstance(text, bytes):
            text = text.decode('utf-8')

    return RawAttribute(value=text, params=params)


def _raw_attributes(component) -> Dict[str, RawAttribute]:
    attributes = {}
    for name, value in component.items():
        # Repeated properties keep their first occurrence
        if isinstance(value, list):
            if not value:
                continue
            value = value[0]
        try:
            attributes[name.upper()] = _raw_attribute(value)
        except Exception as e:
            logger.warning(f"Failed to read property {name}: {e}")
    return attributes


def parse_calendar(ics_data: Union[str, bytes]) -> ParsedCalendar:
    """
    Parse iCalendar text into raw events and declared timezones.

    Args:
        ics_data: Content of an .ics document, as text or UTF-8 bytes

    Returns:
        ParsedCalendar

    Raises:
        ValueError: If the text is not a valid iCalendar document
    """
    calendar = Calendar.from_ical(ics_data)

    timezones = tuple(
        str(component['TZID'])
        for component in calendar.walk('VTIMEZONE')
        if component.get('TZID')
    )

    events: List[RawEvent] = []
    for component in calendar.walk('VEVENT'):
        events.append(RawEvent(
            anchor=str(component.get('UID', '')),
            attributes=_raw_attributes(component)
        ))

    return ParsedCalendar(
        context=CalendarContext(timezones=timezones),
        events=events
    )
