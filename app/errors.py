class PolyShareError(Exception):
    """Base error raised by the service layer; carries a client-safe message."""

    status_code = 500
    default_message = "Unexpected server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(PolyShareError):
    status_code = 400
    default_message = "Invalid data"


class NotFound(PolyShareError):
    status_code = 404
    default_message = "Not found"


class Conflict(PolyShareError):
    status_code = 409
    default_message = "Conflict"


class DuplicateContent(Conflict):
    default_message = "This file has already been uploaded"

    def __init__(self, message: str | None = None, duplicate_id: int | None = None):
        super().__init__(message)
        self.duplicate_id = duplicate_id


class Forbidden(PolyShareError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class InsufficientKarma(PolyShareError):
    status_code = 403
    default_message = "Insufficient karma. Upload a document to earn points!"


class Unexpected(PolyShareError):
    pass
