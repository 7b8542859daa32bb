"""
Custom exception classes for the Matrimony Connect API.
Provides structured error handling with machine-readable error codes.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes shared with the web client"""

    # Authentication errors (401)
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_NOT_AUTHENTICATED = "AUTH_NOT_AUTHENTICATED"

    # Authorization errors (403)
    AUTHZ_FORBIDDEN = "AUTHZ_FORBIDDEN"
    AUTHZ_INSUFFICIENT_PERMISSIONS = "AUTHZ_INSUFFICIENT_PERMISSIONS"

    # Resource errors (404, 409)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # Interest lifecycle (400, 409)
    INTEREST_ALREADY_EXISTS = "INTEREST_ALREADY_EXISTS"
    INTEREST_TARGET_NOT_ELIGIBLE = "INTEREST_TARGET_NOT_ELIGIBLE"
    INTEREST_INVALID_TRANSITION = "INTEREST_INVALID_TRANSITION"

    # Validation errors (400, 422)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500+)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"


class AppException(Exception):
    """
    Base exception class for application errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_ERROR,
        status_code: int = 500,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary"""
        response = {
            "detail": self.message,
            "code": self.code.value,
        }
        if self.field:
            response["field"] = self.field
        if self.metadata:
            response["metadata"] = self.metadata
        return response


# Authentication Errors (401)


class AuthenticationError(AppException):
    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.AUTH_NOT_AUTHENTICATED,
    ):
        super().__init__(message=message, code=code, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message=message, code=ErrorCode.AUTH_INVALID_CREDENTIALS)


# Authorization Errors (403)


class AuthorizationError(AppException):
    """Base authorization error"""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        code: ErrorCode = ErrorCode.AUTHZ_FORBIDDEN,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            metadata=metadata,
        )


class NotAuthorizedError(AuthorizationError):
    """Caller is not the party allowed to perform this transition.

    The message never says which party would be allowed.
    """

    def __init__(self, message: str = "Not authorized to modify this interest"):
        super().__init__(message=message)


class InsufficientPermissionsError(AuthorizationError):
    def __init__(self, message: str = "Admin access required"):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHZ_INSUFFICIENT_PERMISSIONS,
        )


# Resource Errors (404, 409)


class NotFoundError(AppException):
    """Resource not found"""

    def __init__(
        self,
        message: str = "Requested resource not found",
        resource: str | None = None,
    ):
        metadata = {"resource": resource} if resource else None
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            metadata=metadata,
        )


class ProfileNotFoundError(NotFoundError):
    """Profile is missing, or hidden from this viewer"""

    def __init__(self):
        super().__init__(message="Profile not found", resource="profile")


class ProfileAccessDeniedError(ProfileNotFoundError):
    """Viewer is blocked by the profile owner.

    Rendered exactly like ProfileNotFoundError so block state never leaks.
    """


class AlreadyExistsError(AppException):
    """Resource already exists"""

    def __init__(
        self,
        message: str = "Resource already exists",
        field: str | None = None,
        code: ErrorCode = ErrorCode.RESOURCE_ALREADY_EXISTS,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            field=field,
            metadata=metadata,
        )


class DuplicateRelationshipError(AlreadyExistsError):
    """An interest already exists for this pair of users, in either direction"""

    def __init__(
        self,
        message: str = "Interest already exists between these users",
        existing_status: str | None = None,
    ):
        metadata = {"status": existing_status} if existing_status else None
        super().__init__(
            message=message,
            code=ErrorCode.INTEREST_ALREADY_EXISTS,
            metadata=metadata,
        )


class ConflictError(AppException):
    """Resource conflict"""

    def __init__(
        self,
        message: str = "Resource state conflict",
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            metadata=metadata,
        )


class InvalidTransitionError(ConflictError):
    """Interest is no longer pending"""

    def __init__(self, current_status: str | None = None):
        metadata = {"status": current_status} if current_status else None
        super().__init__(
            message="Interest has already been responded to or withdrawn",
            code=ErrorCode.INTEREST_INVALID_TRANSITION,
            metadata=metadata,
        )


# Validation Errors (400, 422)


class ValidationError(AppException):
    """Validation error"""

    def __init__(
        self,
        message: str = "Please check the submitted data",
        field: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            field=field,
        )


class TargetNotEligibleError(ValidationError):
    """Target profile cannot receive an interest from this sender"""

    def __init__(self, message: str = "Cannot send interest to this profile"):
        super().__init__(
            message=message,
            field="to_user_id",
            code=ErrorCode.INTEREST_TARGET_NOT_ELIGIBLE,
            status_code=400,
        )


# Rate Limiting (429)


class RateLimitError(AppException):
    """Rate limit exceeded"""

    def __init__(
        self,
        message: str = "Too many requests. Please wait and try again",
        retry_after: int = 60,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            status_code=429,
            metadata={"retry_after": retry_after},
        )
