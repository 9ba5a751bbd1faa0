"""
Domain errors. Each class carries the HTTP status the API renders it with;
services raise them and the application-level handler turns them into
``{"message": ...}`` responses.
"""


class BrandsnapError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BrandsnapError):
    status_code = 400


class UnauthorizedError(BrandsnapError):
    status_code = 401


class TokenInvalidError(UnauthorizedError):
    pass


class TokenExpiredError(UnauthorizedError):
    pass


class ConflictError(BrandsnapError):
    status_code = 400


class ProviderConflictError(ConflictError):
    """Email already registered with a different auth provider."""


class NotFoundError(BrandsnapError):
    status_code = 404


class IntegrityViolationError(BrandsnapError):
    status_code = 400


class UpstreamError(BrandsnapError):
    status_code = 502
