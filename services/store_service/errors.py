"""Store service domain errors.

Each error carries the HTTP status the API layer answers with.
"""


class StoreError(Exception):
    """Base exception for store business rule failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def extra(self) -> dict:
        """Additional fields rendered next to ``detail`` in error responses."""
        return {}


class ValidationError(StoreError):
    """Malformed caller input."""

    status_code = 400


class NotFoundError(StoreError):
    """Missing resource, or one that belongs to another user."""

    status_code = 404


class InsufficientStockError(StoreError):
    """Requested quantity exceeds the stock read at validation time."""

    status_code = 400

    def __init__(
        self,
        product: str,
        current: int,
        requested: int,
        product_name: str = "",
    ):
        self.product = product
        self.product_name = product_name or product
        self.current = current
        self.requested = requested
        super().__init__(
            f"Insufficient stock for '{self.product_name}': "
            f"current stock {current}, requested {requested}"
        )

    @property
    def extra(self) -> dict:
        return {
            "product": self.product,
            "current": self.current,
            "requested": self.requested,
        }


class OrderCreationError(StoreError):
    """The line items could not be written after validation passed."""

    status_code = 500


class MediaFetchError(StoreError):
    """The image could not be downloaded from the tabular service."""

    status_code = 502
