"""Stateless field-level checks shared by every entity.

Each check returns a ``FieldError`` describing the violation, or ``None``
when the value passes. Entities collect these into a list from their
``validate()`` method; nothing here raises.
"""

from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

Number = Union[int, float]


class FieldError(BaseModel):
    """One rule violation on one field."""
    field: str
    message: str
    code: str


class ValidationUtils:
    """Field rule checks; each returns a FieldError or None."""

    REQUIRED = "REQUIRED"
    MIN_LENGTH = "MIN_LENGTH"
    MAX_LENGTH = "MAX_LENGTH"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_CHARACTERS = "INVALID_CHARACTERS"
    INVALID_FORMAT = "INVALID_FORMAT"

    @staticmethod
    def required(value: Any, field: str) -> Optional[FieldError]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return FieldError(field=field, message=f"{field} is required", code=ValidationUtils.REQUIRED)
        return None

    @staticmethod
    def min_length(value: Optional[str], minimum: int, field: str) -> Optional[FieldError]:
        if value is not None and len(value) < minimum:
            return FieldError(
                field=field,
                message=f"{field} must be at least {minimum} characters",
                code=ValidationUtils.MIN_LENGTH,
            )
        return None

    @staticmethod
    def max_length(value: Optional[str], maximum: int, field: str) -> Optional[FieldError]:
        if value is not None and len(value) > maximum:
            return FieldError(
                field=field,
                message=f"{field} must be at most {maximum} characters",
                code=ValidationUtils.MAX_LENGTH,
            )
        return None

    @staticmethod
    def in_range(
        value: Optional[Number],
        field: str,
        minimum: Optional[Number] = None,
        maximum: Optional[Number] = None,
    ) -> Optional[FieldError]:
        if value is None:
            return None
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            bounds = f"[{'-inf' if minimum is None else minimum}, {'inf' if maximum is None else maximum}]"
            return FieldError(
                field=field,
                message=f"{field} must be within {bounds}",
                code=ValidationUtils.OUT_OF_RANGE,
            )
        return None

    @staticmethod
    def file_size(size: int, max_size: int, field: str = "metadata.size") -> Optional[FieldError]:
        if size > max_size:
            return FieldError(
                field=field,
                message=f"File size {size} exceeds the limit of {max_size} bytes",
                code=ValidationUtils.FILE_TOO_LARGE,
            )
        return None

    @staticmethod
    def invalid_characters(value: Optional[str], forbidden: Iterable[str], field: str) -> Optional[FieldError]:
        if value is None:
            return None
        found = sorted({ch for ch in value if ch in set(forbidden)})
        if found:
            return FieldError(
                field=field,
                message=f"{field} contains invalid characters: {''.join(found)}",
                code=ValidationUtils.INVALID_CHARACTERS,
            )
        return None


def collect(*results: Optional[FieldError]) -> list:
    """Drop the passing checks, keep the errors."""
    return [r for r in results if r is not None]
