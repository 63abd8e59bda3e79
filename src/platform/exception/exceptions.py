class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'ERROR'
    retryable: bool = False

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'message': self.message, 'retryable': self.retryable}


class DomainError(CustomBaseError):
    code = 'DOMAIN_ERROR'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ValidationError(CustomBaseError):
    code = 'VALIDATION_ERROR'

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)


class ForbiddenError(CustomBaseError):
    code = 'FORBIDDEN'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'NOT_FOUND'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    code = 'CONFLICT'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)
