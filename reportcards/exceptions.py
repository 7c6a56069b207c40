"""
Errors raised by the report-card services and translated to JSON responses
by the views. Each carries the HTTP status it maps to.
"""


class ReportCardError(Exception):
    status_code = 400
    default_message = 'Report card request failed'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class MissingParameters(ReportCardError):
    status_code = 400
    default_message = 'Missing parameters'


class InvalidPayload(ReportCardError):
    status_code = 400
    default_message = 'Invalid payload'


class ScopeNotFound(ReportCardError):
    status_code = 404
    default_message = 'Not found'


class NoMarksFound(ReportCardError):
    status_code = 404
    default_message = 'No data found'


class StudentNotInReport(ReportCardError):
    status_code = 404
    default_message = 'Student not found in this report'


class BatchRejected(ReportCardError):
    status_code = 422
    default_message = 'Batch rejected'


class PdfRenderError(ReportCardError):
    status_code = 500
    default_message = 'PDF generation failed'
