"""
Projections of aggregated report records: JSON for the API and a printable
HTML document (which the PDF endpoint hands to WeasyPrint unchanged).
"""
from django.template.loader import render_to_string

from core.choices import SubjectCategory
from .engine import (
    AVERAGE_KEYS, cell_value, columns_for, format_cell, is_low, remark,
    term_label, weighted_average,
)
from .engine.columns import Column

# Placeholder remark for a missing average on printed cards
PRINT_EMPTY_REMARK = 'N/A'
# Placeholder remark for a missing average in API responses
JSON_EMPTY_REMARK = ''

CATEGORY_TITLES = {
    SubjectCategory.GENERAL: 'GENERAL SUBJECTS',
    SubjectCategory.PROFESSIONAL: 'PROFESSIONAL SUBJECTS',
    SubjectCategory.PRACTICAL: 'PRACTICAL SUBJECTS',
}

_AVERAGE_COLUMN = Column('average', 'Average', True)


# ============ JSON ============

def record_json(record, term, scale=None):
    """A record as returned by the API, each subject carrying its remark."""
    data = record.to_dict()
    average_key = AVERAGE_KEYS[term]
    for category, key in (
        (SubjectCategory.GENERAL, 'generalSubjects'),
        (SubjectCategory.PROFESSIONAL, 'professionalSubjects'),
        (SubjectCategory.PRACTICAL, 'practicalSubjects'),
    ):
        for row, row_data in zip(record.subjects_for(category), data[key]):
            text, css_class = remark(row.scores.get(average_key), scale, empty=JSON_EMPTY_REMARK)
            row_data['remark'] = text
            row_data['remarkClass'] = css_class
    return data


def render_bulk_json(records, term, scale=None):
    return {
        'count': len(records),
        'reportCards': [record_json(record, term, scale) for record in records],
    }


# ============ HTML ============

def _subject_section(category, rows, columns, average_key, scale):
    lines = []
    for row in rows:
        average = row.scores.get(average_key)
        text, css_class = remark(average, scale, empty=PRINT_EMPTY_REMARK)
        cells = []
        for column in columns:
            value = cell_value(row.scores, column.key)
            cells.append({'text': format_cell(value, column), 'low': is_low(value, column)})
        points = average * row.coef if average is not None else None
        lines.append({
            'code': row.code,
            'title': row.title,
            'teacher': row.teacher,
            'coef': f"{row.coef:g}",
            'cells': cells,
            'points': format_cell(points, _AVERAGE_COLUMN),
            'remark': text,
            'remark_class': css_class,
        })

    total, subtotal = weighted_average(rows, average_key)
    has_average = any(row.scores.get(average_key) is not None for row in rows)
    subtotal_value = subtotal if has_average else None
    return {
        'title': CATEGORY_TITLES[category],
        'rows': lines,
        'subtotal': {
            'total': format_cell(total if has_average else None, _AVERAGE_COLUMN),
            'average': format_cell(subtotal_value, _AVERAGE_COLUMN),
            'low': is_low(subtotal_value, _AVERAGE_COLUMN),
        },
    }


def card_context(record, term, scale=None):
    """Template context for one printed card."""
    columns = columns_for(term)
    average_key = AVERAGE_KEYS[term]
    sections = [
        _subject_section(category, record.subjects_for(category), columns, average_key, scale)
        for category in SubjectCategory
        if record.subjects_for(category)
    ]

    summary = record.term_totals[term]
    summary_remark, summary_class = remark(summary.average or None, scale, empty=PRINT_EMPTY_REMARK)
    statistics = record.class_statistics
    return {
        'student': record.student_dict(),
        'columns': columns,
        'sections': sections,
        'summary': {
            'total': format_cell(summary.total, _AVERAGE_COLUMN),
            'average': format_cell(summary.average, _AVERAGE_COLUMN),
            'low': is_low(summary.average, _AVERAGE_COLUMN),
            'rank': summary.rank,
            'out_of': summary.out_of,
            'remark': summary_remark,
            'remark_class': summary_class,
        },
        'term_summaries': [
            {
                'label': term_label(key),
                'average': format_cell(record.term_totals[key].average, _AVERAGE_COLUMN),
                'rank': record.term_totals[key].rank,
                'out_of': record.term_totals[key].out_of,
            }
            for key in record.term_totals
        ],
        'statistics': {
            'class_average': format_cell(statistics.class_average, _AVERAGE_COLUMN),
            'highest_average': format_cell(statistics.highest_average, _AVERAGE_COLUMN),
            'lowest_average': format_cell(statistics.lowest_average, _AVERAGE_COLUMN),
        },
        'conduct': record.conduct,
        'administration': record.administration,
    }


def render_html(records, term, scale=None, branding=None):
    """
    One HTML document holding a page per student. Pure: returns a string
    and performs no network or file output.
    """
    context = {
        'cards': [card_context(record, term, scale) for record in records],
        'branding': branding or {},
        'term_label': term_label(term),
    }
    return render_to_string('reportcards/report_cards.html', context)
