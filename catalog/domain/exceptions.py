"""Domain exceptions for the video catalog data layer.

Defines exceptions that represent rule violations detected before any write
(validation, referential integrity, uniqueness) and caller/adapter drift
(unclassified query templates). Store transport failures live in
catalog.infrastructure.exceptions.
"""

from typing import Any


class CatalogException(Exception):
    """Base exception for all catalog data-layer errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(CatalogException):
    """Raised when input validation fails (negative counter, malformed enum value, bad date)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or parameter that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ReferentialIntegrityException(CatalogException):
    """Raised when a write references a site or user that does not exist."""

    def __init__(self, resource_type: str, resource_id: str, field: str) -> None:
        """Initialize with the unresolved reference.

        Args:
            resource_type: Referenced entity type (e.g. 'site', 'user').
            resource_id: The id that did not resolve.
            field: Field on the written record holding the reference (e.g. 'owner_id').
        """
        super().__init__(
            f"Referenced {resource_type} not found: {resource_id}",
            "REFERENTIAL_INTEGRITY_ERROR",
            {"resource_type": resource_type, "resource_id": resource_id, "field": field},
        )


class ResourceNotFoundException(CatalogException):
    """Raised when an update targets a record that does not exist.

    Point lookups never raise this; they return None.
    """

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'video', 'user').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class DuplicateEmailException(CatalogException):
    """Raised when a user write would reuse an email already held by another user."""

    def __init__(self) -> None:
        super().__init__(
            "Email is already registered",
            "DUPLICATE_EMAIL",
            {},
        )


class ResourceAlreadyExistsException(CatalogException):
    """Raised when a create reuses the id of an existing record."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} already exists: {resource_id}",
            "RESOURCE_ALREADY_EXISTS",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SiteAlreadyExistsException(CatalogException):
    """Raised when creating a site whose slug is already taken."""

    def __init__(self, site_id: str) -> None:
        super().__init__(
            f"Site with id '{site_id}' already exists",
            "SITE_ALREADY_EXISTS",
            {"site_id": site_id},
        )


class UnclassifiedQueryException(CatalogException):
    """Raised when a query template matches no known query shape.

    Signals drift between a caller's template wording and the classifier;
    expected to surface in integration tests, not in production traffic.
    """

    def __init__(self, template: str) -> None:
        """Initialize with the offending template.

        Args:
            template: The template text that could not be classified.
        """
        super().__init__(
            "Query template does not match any known query shape",
            "UNCLASSIFIED_QUERY",
            {"template": template},
        )
