"""Catalog error taxonomy.

Every failure the catalog reports to its callers is a subclass of
CatalogError. The core raises these without knowing about HTTP; the API
layer maps each kind to a status code.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImageIssue:
    """An image entry that failed validation, by position in the input list."""
    index: Optional[int]
    value: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CatalogError(Exception):
    """Base class for all catalog errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Input shape or values are wrong; the client can fix the request."""

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class InvalidImageError(CatalogError):
    """One or more image references were rejected."""

    def __init__(self, issues: List[ImageIssue], message: str = "Invalid product images"):
        super().__init__(message)
        self.issues = list(issues)


class NotFoundError(CatalogError):
    """A product ID does not exist."""

    def __init__(self, message: str = "Product not found", ids: Optional[List[str]] = None):
        super().__init__(message)
        self.ids = list(ids or [])


class ConversionError(CatalogError):
    """A currency code is unknown to the rate source."""


class InternalError(CatalogError):
    """Persistence or upstream failure; details stay server-side."""
