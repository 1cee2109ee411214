"""Input validation for the station name and frequency fields."""

from typing import Optional

STATION_NAME_LENGTH_MIN = 1
STATION_NAME_LENGTH_MAX = 10


def is_valid_station_name(name: str,
                          min_length: int = STATION_NAME_LENGTH_MIN,
                          max_length: int = STATION_NAME_LENGTH_MAX) -> bool:
    return min_length <= len(name) <= max_length


def parse_frequency(text: str) -> Optional[float]:
    """Parse a frequency typed by the user; None if it is not a number."""
    try:
        value = float(text.strip().replace(" MHz", ""))
    except (AttributeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return round(value, 1)
