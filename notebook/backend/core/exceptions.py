"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
Lifecycle failures raised by the note service are subclasses of the
generic categories so the exception handlers can map them to HTTP
status codes without knowing every notebook-specific type.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict | None = None,
        code: str = "VAL_VALIDATION_ERROR",
    ) -> None:
        self.details = details or {}
        super().__init__(message, code=code)


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class AuthorizationError(ApplicationError):
    """Raised when authorization fails."""

    def __init__(self, message: str = "Permission denied", code: str = "AUTHZ_FORBIDDEN") -> None:
        super().__init__(message, code=code)


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")


# =============================================================================
# Notebook lifecycle errors
# =============================================================================


class EmptyFieldError(ValidationError):
    """Raised when a note subject or body is empty after trimming."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            f"The {field} cannot be empty.",
            details={"field": field},
            code="NOTE_EMPTY_FIELD",
        )


class ForbiddenError(AuthorizationError):
    """Raised when the caller is not the author of the note."""

    def __init__(self, message: str = "The user cannot access the note.") -> None:
        super().__init__(message, code="NOTE_FORBIDDEN")


class NotebookDisabledError(AuthorizationError):
    """Raised when the notebook feature is switched off."""

    def __init__(self, message: str = "The notebook is disabled.") -> None:
        super().__init__(message, code="NOTEBOOK_DISABLED")


class NotEnrolledError(ValidationError):
    """Raised when a related user is not enrolled in the note's course."""

    def __init__(self, message: str = "The user is not enrolled in the course.") -> None:
        super().__init__(message, code="SCOPE_NOT_ENROLLED")


class ScopeMismatchError(ValidationError):
    """Raised when the module does not belong to the given course."""

    def __init__(
        self,
        message: str = "The course given is different from the course of the course module.",
    ) -> None:
        super().__init__(message, code="SCOPE_MISMATCH")


class CourseNotVisibleError(AuthorizationError):
    """Raised when the course is hidden from the caller."""

    def __init__(self, message: str = "The user cannot access the course information.") -> None:
        super().__init__(message, code="SCOPE_COURSE_NOT_VISIBLE")


class ModuleNotVisibleError(AuthorizationError):
    """Raised when the course module is hidden from the caller."""

    def __init__(self, message: str = "The user cannot access the course module.") -> None:
        super().__init__(message, code="SCOPE_MODULE_NOT_VISIBLE")
