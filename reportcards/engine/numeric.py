import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Marks are out of 20; the mark store and the engine share this range
MIN_SCORE = 0
MAX_SCORE = 20


def round_half_up(value, places=1):
    """Round half away from zero, e.g. 12.25 -> 12.3 and -12.25 -> -12.3."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def as_number(value):
    """Return value as a finite float, or None when it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clean_score(value):
    """A score usable by the engine: numeric and within 0-20, else None."""
    number = as_number(value)
    if number is None or not MIN_SCORE <= number <= MAX_SCORE:
        return None
    return number


def mean(*values):
    """Mean of the usable values rounded to 1 decimal; None when none remain."""
    numbers = [n for n in (as_number(v) for v in values) if n is not None]
    if not numbers:
        return None
    return round_half_up(sum(numbers) / len(numbers))
