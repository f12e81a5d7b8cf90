"""Exception hierarchy for the command engine.

Every error carries a stable ``reason`` code. The executor copies it into
``OperationFailure.reason`` so the reply round can phrase the problem.
"""


class ChatLedgerError(Exception):
    reason = "error"


class ArgumentValidationError(ChatLedgerError):
    reason = "invalid_argument"


class MissingArgumentError(ArgumentValidationError):
    reason = "missing_argument"


class InvalidDateFormat(ArgumentValidationError):
    reason = "invalid_date_format"


class InvalidRange(ArgumentValidationError):
    reason = "invalid_range"


class InvalidPeriodError(ArgumentValidationError):
    reason = "invalid_period"


class NotFoundError(ChatLedgerError):
    reason = "not_found"


class NoDataError(ChatLedgerError):
    reason = "no_data"


class CollaboratorError(ChatLedgerError):
    reason = "collaborator_error"


class ChartGenerationError(CollaboratorError):
    reason = "chart_unavailable"


class CompletionError(CollaboratorError):
    reason = "completion_unavailable"


class MalformedModelOutputError(ChatLedgerError):
    reason = "malformed_model_output"
