"""Line codec for sensor log records.

Each record is one line of ``"<timestamp> <value>"``. Values are written in
the shortest form that parses back to the same float, with the layout the
existing log files already use (``5``, ``0.25``, ``1e+06``, ``1.5e-05``).
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from operator import attrgetter
from typing import Iterable, List

from models.records import Reading

logger = logging.getLogger(__name__)

_FORBIDDEN_TIMESTAMP_CHARS = (" ", "\n", "\r")

# Plain decimal or inf/nan tokens only; float() alone also accepts "1_000" and padding.
_VALUE_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


def format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"

    number = Decimal(repr(value)).normalize()
    sign, digits, exponent = number.as_tuple()
    point = len(digits) + exponent - 1
    if -4 <= point < 6:
        return format(number, "f")

    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(digit) for digit in digits[1:])
    return f"{'-' if sign else ''}{mantissa}e{point:+03d}"


def encode(reading: Reading) -> str:
    """Render a reading as a single log line without the trailing newline."""

    if any(char in reading.timestamp for char in _FORBIDDEN_TIMESTAMP_CHARS):
        raise ValueError(
            f"Timestamp {reading.timestamp!r} must not contain spaces or line breaks."
        )
    return f"{reading.timestamp} {format_value(reading.value)}"


def decode(line: str) -> Reading:
    """Parse one log line.

    An unparsable or missing value is read as ``0.0`` so one damaged record
    does not hide the rest of a sensor's history.
    """

    text = line.rstrip("\r\n")
    timestamp, _, remainder = text.partition(" ")
    raw_value = remainder.split(" ", 1)[0]
    if _VALUE_PATTERN.fullmatch(raw_value):
        value = float(raw_value)
    else:
        logger.warning(
            "Unparsable value in sensor log line, substituting 0.0",
            extra={"line": text, "reason": "invalid numeric value"},
        )
        value = 0.0
    return Reading(timestamp=timestamp, value=value)


def sort_readings(readings: Iterable[Reading]) -> List[Reading]:
    # sorted() is stable, ties keep file order.
    return sorted(readings, key=attrgetter("timestamp"))
