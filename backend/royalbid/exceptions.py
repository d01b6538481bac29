"""Catalog error taxonomy.

Every error the catalog raises on purpose derives from :class:`CatalogError`
and carries the HTTP status it maps to. :class:`InvariantViolation` is the
exception: it signals a programming error (a caller skipped a precondition)
and is reported as a 500.
"""


class CatalogError(Exception):
    """Base class for expected, caller-facing catalog errors."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# --- 400 ---------------------------------------------------------------------

class ValidationError(CatalogError):
    status_code = 400


class SearchQueryTooShort(ValidationError):
    def __init__(self, min_length: int = 2):
        self.min_length = min_length
        super().__init__(f"Search query must be at least {min_length} characters long")


class InvalidProductId(ValidationError):
    def __init__(self, noun: str = "product"):
        super().__init__(f"Invalid {noun} ID")


class InvalidPagination(ValidationError):
    pass


class InvalidPriceRange(ValidationError):
    def __init__(self, min_price, max_price):
        self.min_price = min_price
        self.max_price = max_price
        super().__init__(
            f"Minimum price ({min_price}) cannot exceed maximum price ({max_price})"
        )


class InvalidListing(ValidationError):
    """A write would break the variant's required-field rules."""


# --- 403 / 404 / 501 ---------------------------------------------------------

class AuthorizationError(CatalogError):
    status_code = 403


class PermissionDenied(AuthorizationError):
    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message)


class NotFoundError(CatalogError):
    status_code = 404


class ProductNotFound(NotFoundError):
    def __init__(self, noun: str = "Product"):
        super().__init__(f"{noun} not found")


class FeatureNotImplemented(CatalogError):
    status_code = 501

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"{feature} is not implemented yet")


# --- programming errors ------------------------------------------------------

class InvariantViolation(Exception):
    """Raised when code is called with data that breaks a catalog invariant."""
