"""
Maps averages on the 0-20 scale to a textual remark and a CSS class.

The remark text may come from a class-specific scale, but the CSS class
always comes from the default scale so custom wording keeps the same colours.
"""
import re

from .numeric import MAX_SCORE, MIN_SCORE, as_number
from .types import GradingBand

DEFAULT_SCALE = (
    GradingBand(18, 20, 'Excellent', 'remark-excellent'),
    GradingBand(16, 17.99, 'Very Good', 'remark-very-good'),
    GradingBand(14, 15.99, 'Good', 'remark-good'),
    GradingBand(12, 13.99, 'Fairly Good', 'remark-fairly-good'),
    GradingBand(10, 11.99, 'Average', 'remark-average'),
    GradingBand(0, 9.99, 'Weak', 'remark-weak'),
)

NO_REMARK = 'No Remark'


def normalize_label(label):
    """'Very good ' and 'VERY-GOOD' both normalize to 'verygood'."""
    return re.sub(r'[^a-z]', '', str(label or '').lower())


_DEFAULT_CLASSES = {normalize_label(band.comment): band.remark_class for band in DEFAULT_SCALE}


def remark_class_for(label):
    return _DEFAULT_CLASSES.get(normalize_label(label), '')


def remark(average, scale=None, empty=''):
    """
    Return ``(remark, remark_class)`` for an average.

    ``empty`` is returned as the remark when there is no average; the JSON
    endpoints pass '' and the printed cards pass 'N/A'.
    """
    value = as_number(average)
    if value is None:
        return empty, ''

    bands = sorted(scale or DEFAULT_SCALE, key=lambda band: band.band_min, reverse=True)
    for band in bands:
        if band.band_min <= value <= band.band_max:
            return band.comment, remark_class_for(band.comment)
    return NO_REMARK, ''


def _as_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_bands(bands):
    """
    Validate a custom scale submitted as a list of dicts with
    band_min, band_max and comment. Returns a list of error messages.
    """
    errors = []
    cleaned = []
    for index, band in enumerate(bands, 1):
        if not isinstance(band, dict):
            errors.append(f"Band {index}: must be an object")
            continue
        band_min, band_max = _as_int(band.get('band_min')), _as_int(band.get('band_max'))
        comment = str(band.get('comment') or '').strip()
        if band_min is None or band_max is None:
            errors.append(f"Band {index}: band_min and band_max must be integers")
            continue
        if not (MIN_SCORE <= band_min <= MAX_SCORE and MIN_SCORE <= band_max <= MAX_SCORE):
            errors.append(f"Band {index}: values must be between {MIN_SCORE} and {MAX_SCORE}")
            continue
        if band_max < band_min:
            errors.append(f"Band {index}: band_max must be greater than or equal to band_min")
            continue
        if len(comment) < 2:
            errors.append(f"Band {index}: comment must be at least 2 characters")
            continue
        cleaned.append((band_min, band_max, index))

    cleaned.sort()
    for (min_a, max_a, index_a), (min_b, max_b, index_b) in zip(cleaned, cleaned[1:]):
        if min_b <= max_a:
            errors.append(f"Bands {index_a} and {index_b} overlap ({min_a}-{max_a}, {min_b}-{max_b})")
    return errors
