"""
Which score columns a printed card shows for each term scope, and how
their cells are formatted.
"""
from collections import namedtuple

from .numeric import as_number, mean, round_half_up
from .types import TERM1, TERM2, TERM3, ANNUAL

Column = namedtuple('Column', ['key', 'label', 'is_average'])

LOW_SCORE_THRESHOLD = 10

_LABELS = {
    'seq1': 'Seq 1', 'seq2': 'Seq 2', 'seq3': 'Seq 3',
    'seq4': 'Seq 4', 'seq5': 'Seq 5', 'seq6': 'Seq 6',
    'term1Avg': 'Term 1', 'term2Avg': 'Term 2', 'term3Avg': 'Term 3',
    'yearAvg': 'Year Avg', 'finalAvg': 'Final Avg',
}

_LAYOUT = {
    TERM1: ('seq1', 'seq2', 'term1Avg'),
    TERM2: ('seq3', 'seq4', 'term2Avg', 'term1Avg', 'yearAvg'),
    TERM3: ('seq5', 'seq6', 'term3Avg', 'term1Avg', 'term2Avg', 'finalAvg'),
    ANNUAL: ('seq1', 'seq2', 'term1Avg', 'seq3', 'seq4', 'term2Avg',
             'seq5', 'seq6', 'term3Avg', 'finalAvg'),
}

# Column holding the headline average of each scope
AVERAGE_KEYS = {
    TERM1: 'term1Avg',
    TERM2: 'term2Avg',
    TERM3: 'term3Avg',
    ANNUAL: 'finalAvg',
}

TERM_LABELS = {
    TERM1: 'FIRST TERM',
    TERM2: 'SECOND TERM',
    TERM3: 'THIRD TERM',
    ANNUAL: 'ANNUAL',
}


def columns_for(term_key):
    return [
        Column(key, _LABELS[key], not key.startswith('seq'))
        for key in _LAYOUT[term_key]
    ]


def cell_value(scores, key):
    """Value of a column for a row's SubjectScores; yearAvg is derived."""
    if key == 'yearAvg':
        return mean(scores.term1_avg, scores.term2_avg)
    return scores.get(key)


def format_cell(value, column, placeholder='-'):
    number = as_number(value)
    if number is None:
        return placeholder
    if column.is_average:
        return f"{round_half_up(number):.1f}"
    return str(int(round_half_up(number, 0)))


def is_low(value, column):
    """Average cells below the threshold are highlighted; sequence cells never are."""
    number = as_number(value)
    return column.is_average and number is not None and number < LOW_SCORE_THRESHOLD


def normalize_term(text, default=ANNUAL):
    """
    Map free text such as 'First Term', 't2' or 'annual' to a term key.
    Anything unrecognised falls back to ``default``.
    """
    value = str(text or '').strip().lower()
    if not value:
        return default
    if value in _LAYOUT:
        return value
    if 'annual' in value:
        return ANNUAL
    if 'first' in value or 't1' in value:
        return TERM1
    if 'second' in value or 't2' in value:
        return TERM2
    if 'third' in value or 't3' in value:
        return TERM3
    return default


def term_label(term_key):
    return TERM_LABELS[term_key]
