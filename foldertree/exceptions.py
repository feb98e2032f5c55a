"""Custom exception hierarchy for the folder tree store."""

from enum import Enum
from typing import Optional, Dict, Any, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .entities.validation import FieldError


class ErrorCode(str, Enum):
    """Standardized machine-readable error codes."""

    # Lookup errors
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"

    # Validation errors
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_NAME = "DUPLICATE_NAME"

    # Hierarchy errors
    CYCLE_DETECTED = "CYCLE_DETECTED"
    NON_EMPTY_FOLDER = "NON_EMPTY_FOLDER"

    # Protection errors
    PROTECTED_RESOURCE = "PROTECTED_RESOURCE"
    INVALID_STATE = "INVALID_STATE"

    # Database errors
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class FolderTreeException(Exception):
    """
    Base exception for all store errors.

    Provides structured errors with:
    - Human-readable message
    - Machine-readable error code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a plain dictionary.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(FolderTreeException):
    """No live row exists for the requested id."""

    entity_name = "Entity"
    id_field = "id"
    code = ErrorCode.FOLDER_NOT_FOUND

    def __init__(self, entity_id: str):
        super().__init__(
            f"{self.entity_name} not found: {entity_id}",
            self.code,
            details={self.id_field: entity_id}
        )
        self.entity_id = entity_id


class FolderNotFoundError(NotFoundError):
    """Folder not found in database."""

    entity_name = "Folder"
    id_field = "folder_id"
    code = ErrorCode.FOLDER_NOT_FOUND


class FileEntryNotFoundError(NotFoundError):
    """File not found in database."""

    entity_name = "File"
    id_field = "file_id"
    code = ErrorCode.FILE_NOT_FOUND


class TagNotFoundError(NotFoundError):
    """Tag not found in database."""

    entity_name = "Tag"
    id_field = "tag_id"
    code = ErrorCode.TAG_NOT_FOUND


class ValidationFailedError(FolderTreeException):
    """One or more field-level rules were violated."""

    def __init__(self, errors: List["FieldError"], message: Optional[str] = None):
        if message is None:
            message = "; ".join(f"{e.field}: {e.message}" for e in errors) or "Validation failed"
        super().__init__(
            message,
            ErrorCode.VALIDATION_FAILED,
            details={"errors": [e.model_dump() for e in errors]}
        )
        self.errors = list(errors)

    @classmethod
    def single(cls, field: str, message: str, code: str = "INVALID_FORMAT") -> "ValidationFailedError":
        from .entities.validation import FieldError
        return cls([FieldError(field=field, message=message, code=code)])


class DuplicateNameError(FolderTreeException):
    """A sibling or an active tag already uses this name."""

    def __init__(self, name: str, scope: str, parent_id: Optional[str] = None):
        details: Dict[str, Any] = {"name": name, "scope": scope}
        if parent_id is not None:
            details["parent_id"] = parent_id
        super().__init__(
            f"A {scope} named '{name}' already exists",
            ErrorCode.DUPLICATE_NAME,
            details=details
        )


class ProtectedResourceError(FolderTreeException):
    """Deletion or unprotection of a protected resource was refused."""

    def __init__(self, message: str, resource_id: str, error_code: ErrorCode = ErrorCode.PROTECTED_RESOURCE):
        super().__init__(message, error_code, details={"resource_id": resource_id})


class InvalidStateError(ProtectedResourceError):
    """The resource's current state forbids the requested transition."""

    def __init__(self, message: str, resource_id: str):
        super().__init__(message, resource_id, error_code=ErrorCode.INVALID_STATE)


class CycleDetectedError(FolderTreeException):
    """Re-parenting would make an entity its own ancestor."""

    def __init__(self, node_id: str, parent_id: Optional[str], message: Optional[str] = None):
        super().__init__(
            message or f"Would create a cycle: {node_id} -> {parent_id}",
            ErrorCode.CYCLE_DETECTED,
            details={"node_id": node_id, "parent_id": parent_id}
        )


class NonEmptyFolderError(FolderTreeException):
    """Folder still holds files or subfolders."""

    def __init__(self, folder_id: str, file_count: int, folder_count: int):
        super().__init__(
            f"Folder {folder_id} is not empty "
            f"({file_count} files, {folder_count} subfolders); use force to delete",
            ErrorCode.NON_EMPTY_FOLDER,
            details={
                "folder_id": folder_id,
                "file_count": file_count,
                "folder_count": folder_count,
            }
        )


class PersistenceError(FolderTreeException):
    """Underlying store operation failed."""

    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        details: Dict[str, Any] = {"operation": operation}
        if original_error:
            details["original_error"] = str(original_error)
        super().__init__(
            f"Failed to {operation}",
            ErrorCode.PERSISTENCE_ERROR,
            details=details
        )
        self.operation = operation
        self.original_error = original_error
