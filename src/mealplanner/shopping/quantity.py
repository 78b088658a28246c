"""Free-text quantity parsing, formatting and combination."""

import math
import re
from dataclasses import dataclass

from mealplanner.logging_config import get_logger

logger = get_logger(__name__)


# A whole-string number: optional sign, digits with optional decimals (or a
# leading-dot decimal), optional exponent. No leading-number extraction.
_NUMBER_PATTERN = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")

# Values closer than this to an integer render as that integer
INTEGER_TOLERANCE = 0.01


@dataclass(frozen=True)
class Numeric:
    """A quantity that parsed to a number, with the unit it was measured in."""

    value: float
    unit: str | None


@dataclass(frozen=True)
class Opaque:
    """A quantity that could not be read as a number ("to taste", "a pinch")."""

    text: str


Quantity = Numeric | Opaque


def _parse_number(text: str) -> float | None:
    if not _NUMBER_PATTERN.match(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def parse_number(text: str) -> float | None:
    """
    Parse a quantity string into a number, or None when it is not numeric.

    Handles formats like:
    - "2"
    - "1.5"
    - "1/2"

    Anything else ("to taste", "2 cups", "1-2", "1/0") yields None.
    """
    if text is None:
        return None

    if "/" in text:
        parts = text.split("/")
        if len(parts) != 2:
            return None
        numerator = _parse_number(parts[0])
        denominator = _parse_number(parts[1])
        if numerator is None or denominator is None or denominator == 0:
            return None
        return numerator / denominator

    if "to taste" in text.lower():
        return None

    return _parse_number(text)


def parse_quantity(text: str, unit: str | None = None) -> Quantity:
    """Read a quantity string as Numeric when possible, Opaque otherwise."""
    value = parse_number(text)
    if value is None:
        return Opaque(text=text)
    return Numeric(value=value, unit=unit)


def try_parse(text: str) -> tuple[float, bool]:
    """
    Parse a quantity, reporting success instead of raising.

    Returns:
        Tuple of (value, ok). value is 0.0 when ok is False.
    """
    value = parse_number(text)
    if value is None:
        return 0.0, False
    return value, True


def format_quantity(value: float) -> str:
    """
    Render a number for display.

    Near-integers (within 0.01) render without decimals, everything else
    with at most two decimals and no trailing zeros. Non-finite values
    render as str() does.
    """
    if not math.isfinite(value):
        return str(value)
    nearest = round(value)
    if abs(value - nearest) < INTEGER_TOLERANCE:
        return str(int(nearest))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def combine(
    existing_quantity: str,
    existing_unit: str | None,
    new_quantity: str,
    new_unit: str | None,
) -> str:
    """
    Combine two quantities of the same ingredient into one display string.

    Numbers in identical units are summed. Anything else (differing units,
    a side that does not parse, or a sum too large for a float) is joined as "existing + new" so no
    information is lost.
    """
    existing = parse_quantity(existing_quantity, existing_unit)
    new = parse_quantity(new_quantity, new_unit)

    if isinstance(existing, Numeric) and isinstance(new, Numeric) and existing.unit == new.unit:
        total = existing.value + new.value
        if math.isfinite(total):
            return format_quantity(total)

    logger.debug(
        f"Keeping quantities separate: {existing_quantity!r} {existing_unit!r} "
        f"+ {new_quantity!r} {new_unit!r}"
    )
    return f"{existing_quantity} + {new_quantity}"
