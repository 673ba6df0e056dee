class AppError(Exception):
    """Base error raised by the services and translated to an HTTP response"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "failed" if 400 <= self.status_code < 500 else "error"


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AccessDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class BoardAccessDenied(NotFoundError):
    """The caller is neither owner nor member; reported as not found"""


class ConflictError(AppError):
    status_code = 409
