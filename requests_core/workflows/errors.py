# requests_core/workflows/errors.py

"""
Failure modes of a single deadline edit attempt.

None of these are fatal: each one is surfaced to the caller, and the caller
decides how to show it. `retryable` tells the client whether re-submitting
(after correcting input) can succeed without a status change.
"""


class DeadlineEditError(Exception):
    code = "deadline_edit_error"
    field = "required_by"
    retryable = False
    default_message = "Deadline could not be updated."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {
            self.field: [self.message],
            "code": self.code,
            "retryable": self.retryable,
        }


class EditLocked(DeadlineEditError):
    code = "edit_locked"
    default_message = "Deadline cannot be changed at this stage."


class MissingReason(DeadlineEditError):
    code = "missing_reason"
    field = "reason"
    retryable = True
    default_message = "Please provide a reason for the change."


class NoChange(DeadlineEditError):
    code = "no_change"
    retryable = True
    default_message = "Please select a different date."


class StoreFailure(DeadlineEditError):
    code = "store_failure"
    field = "detail"
    retryable = True
    default_message = "Failed to update deadline."
