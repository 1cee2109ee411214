import pytest

from fmtuner.ui.validators import is_valid_station_name, parse_frequency


@pytest.mark.parametrize("name, valid", [
    ("", False),
    ("A", True),
    ("Jazz FM", True),
    ("0123456789", True),
    ("01234567890", False),
])
def test_station_name_length(name, valid):
    assert is_valid_station_name(name) is valid


def test_station_name_custom_limits():
    assert is_valid_station_name("ab", min_length=3, max_length=5) is False
    assert is_valid_station_name("abcd", min_length=3, max_length=5) is True


@pytest.mark.parametrize("text, expected", [
    ("100.7", 100.7),
    (" 95 ", 95.0),
    ("101.2 MHz", 101.2),
    ("abc", None),
    ("", None),
    ("nan", None),
    ("inf", None),
])
def test_parse_frequency(text, expected):
    assert parse_frequency(text) == expected
