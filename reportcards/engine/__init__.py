"""
Pure report-card computations: no database access and no Django requests.
"""
from .aggregation import aggregate, class_statistics, weighted_average
from .columns import (
    AVERAGE_KEYS, LOW_SCORE_THRESHOLD, Column, cell_value, columns_for, format_cell, is_low,
    normalize_term, term_label,
)
from .grading import DEFAULT_SCALE, NO_REMARK, remark, remark_class_for, validate_bands
from .numeric import MAX_SCORE, MIN_SCORE
from .types import (
    TERM1, TERM2, TERM3, ANNUAL, TERM_KEYS,
    Administration, ClassStatistics, GradingBand, RawMark, StudentInfo,
    StudentReportRecord, SubjectInfo, SubjectScoreRow, SubjectScores, TermTotal,
)
