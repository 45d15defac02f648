"""Parsing of GEO property values."""
import math
from typing import Optional

from processor.models import GeoPoint, RawAttribute


def resolve_geo(attribute: RawAttribute) -> Optional[GeoPoint]:
    """
    Parse a ``latitude;longitude`` value.

    Returns None when the separator is missing, the value does not split
    into exactly two fields, or either field is not a finite number.
    """
    value = attribute.value
    if ';' not in value:
        return None

    fields = value.split(';')
    if len(fields) != 2:
        return None

    try:
        latitude = float(fields[0].strip())
        longitude = float(fields[1].strip())
    except ValueError:
        return None

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None

    return GeoPoint(latitude=latitude, longitude=longitude)
