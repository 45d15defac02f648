"""Resolution of iCalendar date-time values into absolute instants."""
import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional

from processor.models import CalendarContext, RawAttribute
from processor.timezones import DEFAULT_TIMEZONE, resolve_zone

logger = logging.getLogger(__name__)

# Candidate formats in decreasing precision, keyed by digit count
DATETIME_FORMATS = [
    ('%Y%m%d%H%M%S', 14),
    ('%Y%m%d%H%M', 12),
    ('%Y%m%d%H', 10),
    ('%Y%m%d', 8),
]

SEPARATORS = ('T', 't', '-', ':')


def _strip_separators(value: str) -> str:
    contents = value.strip()
    for separator in SEPARATORS:
        contents = contents.replace(separator, '')
    return contents


def _parse_civil(digits: str) -> Optional[datetime]:
    """
    Parse a digit string with the first format whose shape it matches.

    Args:
        digits: Date-time digits with separators and suffix removed

    Returns:
        Naive datetime or None if no format matches
    """
    if not digits.isdigit():
        return None

    for fmt, length in DATETIME_FORMATS:
        if len(digits) != length:
            continue
        try:
            return datetime.strptime(digits, fmt)
        except ValueError:
            continue

    return None


def _select_zone(
    attribute: RawAttribute,
    context: CalendarContext,
    default_timezone: str
) -> tzinfo:
    """
    Pick the zone for a value without a UTC suffix.

    Order: explicit TZID parameter, first declared calendar timezone,
    then the default zone.
    """
    tzid = attribute.param('TZID')
    if tzid is None and context.timezones:
        tzid = context.timezones[0]

    if tzid is not None:
        zone = resolve_zone(tzid)
        if zone is not None:
            return zone
        logger.warning(
            f"Falling back to {default_timezone} for unresolved TZID {tzid}"
        )

    zone = resolve_zone(default_timezone)
    if zone is None:
        raise ValueError(f"Unknown default timezone: {default_timezone}")
    return zone


def resolve_datetime(
    attribute: RawAttribute,
    context: CalendarContext,
    default_timezone: str = DEFAULT_TIMEZONE
) -> Optional[datetime]:
    """
    Resolve a DATE or DATE-TIME value into a timezone-aware datetime.

    Args:
        attribute: Raw property value and parameters
        context: Calendar-level declared timezones
        default_timezone: Zone used when no other zone information exists

    Returns:
        Timezone-aware datetime, or None if the value matches no format

    Raises:
        ValueError: If a zone is needed and default_timezone is unknown
    """
    contents = _strip_separators(attribute.value)
    if not contents:
        return None

    if contents[-1] in ('Z', 'z'):
        civil = _parse_civil(contents[:-1])
        if civil is None:
            return None
        return civil.replace(tzinfo=timezone.utc)

    civil = _parse_civil(contents)
    if civil is None:
        logger.debug(f"Unrecognized date-time value: {attribute.value}")
        return None

    zone = _select_zone(attribute, context, default_timezone)
    return civil.replace(tzinfo=zone)
