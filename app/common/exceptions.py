"""
Typed application errors.

Each error is an HTTPException (so services keep the usual
``except HTTPException: raise`` flow) that also carries a machine-readable
``code`` rendered by the handler registered in ``app.main``.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base error with a stable code for API clients"""

    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(status_code=self.status_code_default, detail=message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        return body


class InvalidInputError(AppError):
    """Malformed or missing required input"""
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """Referenced entity does not exist"""
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class BadRequestError(AppError):
    """Valid shape, but violates a business rule"""
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"


class ForbiddenError(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class InternalError(AppError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
