from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "message": message,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details,
                },
            },
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details,
        )


class AuthorizationError(BaseAPIException):
    """Authorization related errors"""

    def __init__(self, message: str = "Access forbidden", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTH_002",
            message=message,
            details=details,
        )


class ValidationError(BaseAPIException):
    """Validation errors"""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details,
        )


class BusinessLogicError(BaseAPIException):
    """Business logic errors"""

    def __init__(self, error_code: str, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details,
        )


class InvalidStateError(BusinessLogicError):
    """Operation not allowed for the record's type or current state"""

    def __init__(self, message: str, error_code: str = "PAYMENT_001", details: Optional[Dict] = None):
        super().__init__(error_code=error_code, message=message, details=details)


class NotFoundError(BaseAPIException):
    """Resource not found errors"""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details,
        )


class ConflictError(BaseAPIException):
    """Resource conflict errors"""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict] = None,
        error_code: str = "CONFLICT_001",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            details=details,
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details,
        )


class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""

    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message,
            details=details,
        )
