"""Timezone identifier resolution for calendar feeds."""
import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Zone used when a value carries no zone information at all
DEFAULT_TIMEZONE = 'Asia/Shanghai'

# Windows zone names emitted by Outlook/Exchange feeds
WINDOWS_ZONE_NAMES = {
    'Pacific Standard Time': 'America/Los_Angeles',
    'Mountain Standard Time': 'America/Denver',
    'Central Standard Time': 'America/Chicago',
    'Eastern Standard Time': 'America/New_York',
    'GMT Standard Time': 'Europe/London',
    'W. Europe Standard Time': 'Europe/Berlin',
    'Romance Standard Time': 'Europe/Paris',
    'Central European Standard Time': 'Europe/Warsaw',
    'Russian Standard Time': 'Europe/Moscow',
    'India Standard Time': 'Asia/Kolkata',
    'China Standard Time': 'Asia/Shanghai',
    'Taipei Standard Time': 'Asia/Taipei',
    'Tokyo Standard Time': 'Asia/Tokyo',
    'Korea Standard Time': 'Asia/Seoul',
    'Singapore Standard Time': 'Asia/Singapore',
    'AUS Eastern Standard Time': 'Australia/Sydney',
    'UTC': 'UTC',
}


def _load_zone(name: str) -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def resolve_zone(tzid: Optional[str]) -> Optional[ZoneInfo]:
    """
    Resolve a TZID to a ZoneInfo.

    Accepts IANA names, common Windows zone names and path-prefixed
    identifiers such as ``/mozilla.org/20050126_1/America/New_York``.

    Args:
        tzid: Timezone identifier from a TZID parameter or VTIMEZONE

    Returns:
        ZoneInfo, or None if the identifier does not name a known zone
    """
    if not tzid:
        return None

    name = tzid.strip().strip('"')
    name = WINDOWS_ZONE_NAMES.get(name, name)
    if not name:
        return None

    zone = _load_zone(name)
    if zone is not None:
        return zone

    # Try successively shorter path suffixes
    parts = [part for part in name.split('/') if part]
    for i in range(1, len(parts)):
        zone = _load_zone('/'.join(parts[i:]))
        if zone is not None:
            return zone

    logger.warning(f"Unknown timezone identifier: {tzid}")
    return None
