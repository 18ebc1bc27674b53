class AppError(Exception):
    """Base for errors that map straight onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(AppError):
    status_code = 400


class AlreadyPaidError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class PaymentProviderError(AppError):
    """The payment provider could not be reached or rejected the call."""

    status_code = 502


class SearchUnavailableError(AppError):
    status_code = 503
