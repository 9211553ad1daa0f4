import logging

import pytest

from csafutil.loglevel import DEBUG, ERROR, INFO, WARN, LogLevel, parse_log_level


def test_marshal_flag_info():
    assert INFO.marshal_flag() == "info"


@pytest.mark.parametrize(
    "level, expected",
    [
        (LogLevel(-6), "debug-2"),
        (LogLevel(6), "warn+2"),
        (LogLevel(7), "warn+3"),
        (LogLevel(9), "error+1"),
        (DEBUG, "debug"),
    ],
)
def test_marshal_flag_offsets(level, expected):
    assert level.marshal_flag() == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("debug", DEBUG),
        ("info", INFO),
        ("warn", WARN),
        ("error", ERROR),
        ("Info", INFO),
        ("WARN+2", LogLevel(6)),
        ("error-1", LogLevel(7)),
    ],
)
def test_parse_log_level(text, expected):
    assert parse_log_level(text) == expected


@pytest.mark.parametrize("text", ["invalid", "info+", "de-bug", "", "warn+ 1"])
def test_parse_log_level_invalid(text):
    with pytest.raises(ValueError, match="slog: level string"):
        parse_log_level(text)


def test_round_trip():
    for value in range(-8, 12):
        level = LogLevel(value)
        assert parse_log_level(level.marshal_flag()) == level


def test_str_is_upper_case():
    assert str(LogLevel(5)) == "WARN+1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
    ],
)
def test_logging_level(text, expected):
    assert parse_log_level(text).logging_level == expected