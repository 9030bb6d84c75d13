"""Domain errors raised by services; the app-level handler in main.py turns them into JSON responses."""


class TapReviewError(Exception):
    status_code = 500


class NotFoundError(TapReviewError):
    status_code = 404


class InvalidStateError(TapReviewError):
    status_code = 400


class ConflictError(TapReviewError):
    status_code = 409


class CodeGenerationError(TapReviewError):
    status_code = 500
