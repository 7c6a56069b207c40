"""
Value types flowing through the report-card engine.

Inputs (RawMark and its projections) are built by the mark store reader;
outputs (StudentReportRecord and friends) are built by ``aggregate`` and
serialized with ``to_dict`` into the camelCase shape the API returns.
"""
from dataclasses import dataclass, field
from typing import Optional

from core.choices import SubjectCategory

TERM1 = 'term1'
TERM2 = 'term2'
TERM3 = 'term3'
ANNUAL = 'annual'

TERM_KEYS = (TERM1, TERM2, TERM3, ANNUAL)

SEQUENCE_KEYS = ('seq1', 'seq2', 'seq3', 'seq4', 'seq5', 'seq6')

# Static sequence legend printed on every card
SEQUENCES = {
    key: {'name': f"Sequence {number}", 'weight': 1}
    for number, key in enumerate(SEQUENCE_KEYS, 1)
}


@dataclass(frozen=True)
class StudentInfo:
    id: Optional[int]
    name: str = ''
    registration_number: str = ''
    date_of_birth: Optional[object] = None
    class_name: str = ''
    department_name: str = ''


@dataclass(frozen=True)
class SubjectInfo:
    id: Optional[int]
    code: str = ''
    title: str = ''
    coefficient: Optional[float] = 1
    category: Optional[str] = None


@dataclass(frozen=True)
class RawMark:
    """One stored mark with the projections the engine needs."""
    student: Optional[StudentInfo]
    subject: SubjectInfo
    sequence_number: int
    score: object
    class_id: Optional[int] = None
    academic_year_id: Optional[int] = None
    academic_year_name: str = ''
    term_number: Optional[int] = None
    teacher_name: str = ''


@dataclass(frozen=True)
class GradingBand:
    band_min: float
    band_max: float
    comment: str
    remark_class: str = ''

    def to_dict(self):
        return {
            'band_min': self.band_min,
            'band_max': self.band_max,
            'comment': self.comment,
            'remarkClass': self.remark_class,
        }


@dataclass
class SubjectScores:
    seq1: Optional[float] = None
    seq2: Optional[float] = None
    seq3: Optional[float] = None
    seq4: Optional[float] = None
    seq5: Optional[float] = None
    seq6: Optional[float] = None
    term1_avg: Optional[float] = None
    term2_avg: Optional[float] = None
    term3_avg: Optional[float] = None
    final_avg: Optional[float] = None

    # API key -> attribute
    KEYS = {
        'seq1': 'seq1', 'seq2': 'seq2', 'seq3': 'seq3',
        'seq4': 'seq4', 'seq5': 'seq5', 'seq6': 'seq6',
        'term1Avg': 'term1_avg', 'term2Avg': 'term2_avg',
        'term3Avg': 'term3_avg', 'finalAvg': 'final_avg',
    }

    def get(self, key):
        return getattr(self, self.KEYS[key])

    def to_dict(self):
        return {key: getattr(self, attr) for key, attr in self.KEYS.items()}


@dataclass
class SubjectScoreRow:
    code: str
    title: str
    coef: float
    teacher: str
    category: SubjectCategory
    scores: SubjectScores = field(default_factory=SubjectScores)

    def to_dict(self):
        return {
            'code': self.code,
            'title': self.title,
            'coef': self.coef,
            'teacher': self.teacher,
            'scores': self.scores.to_dict(),
        }


@dataclass
class TermTotal:
    total: float = 0
    average: float = 0
    rank: Optional[int] = None
    out_of: Optional[int] = None

    def to_dict(self):
        return {
            'total': self.total,
            'average': self.average,
            'rank': self.rank,
            'outOf': self.out_of,
        }


@dataclass
class ClassStatistics:
    class_average: float = 0
    highest_average: float = 0
    lowest_average: float = 0

    def to_dict(self):
        return {
            'classAverage': self.class_average,
            'highestAverage': self.highest_average,
            'lowestAverage': self.lowest_average,
        }


@dataclass
class Administration:
    class_master: str = ''
    principal: str = ''
    next_term_starts: str = ''
    decision: str = ''

    def to_dict(self):
        return {
            'classMaster': self.class_master,
            'principal': self.principal,
            'nextTermStarts': self.next_term_starts,
            'decision': self.decision,
        }


@dataclass
class StudentReportRecord:
    student: StudentInfo
    academic_year: str
    term: str
    general_subjects: list = field(default_factory=list)
    professional_subjects: list = field(default_factory=list)
    practical_subjects: list = field(default_factory=list)
    term_totals: dict = field(default_factory=lambda: {key: TermTotal() for key in TERM_KEYS})
    class_statistics: ClassStatistics = field(default_factory=ClassStatistics)
    conduct: dict = field(default_factory=dict)
    administration: Administration = field(default_factory=Administration)

    def subjects_for(self, category):
        return {
            SubjectCategory.GENERAL: self.general_subjects,
            SubjectCategory.PROFESSIONAL: self.professional_subjects,
            SubjectCategory.PRACTICAL: self.practical_subjects,
        }[category]

    @property
    def all_subjects(self):
        return self.general_subjects + self.professional_subjects + self.practical_subjects

    def student_dict(self):
        dob = self.student.date_of_birth
        return {
            'id': self.student.id,
            'name': self.student.name,
            'registrationNumber': self.student.registration_number,
            'dateOfBirth': dob.isoformat() if hasattr(dob, 'isoformat') else dob,
            'class': self.student.class_name,
            'option': self.student.department_name,
            'academicYear': self.academic_year,
            'term': self.term,
        }

    def to_dict(self):
        return {
            'student': self.student_dict(),
            'sequences': SEQUENCES,
            'generalSubjects': [row.to_dict() for row in self.general_subjects],
            'professionalSubjects': [row.to_dict() for row in self.professional_subjects],
            'practicalSubjects': [row.to_dict() for row in self.practical_subjects],
            'termTotals': {key: total.to_dict() for key, total in self.term_totals.items()},
            'classStatistics': self.class_statistics.to_dict(),
            'conduct': dict(self.conduct),
            'administration': self.administration.to_dict(),
        }
