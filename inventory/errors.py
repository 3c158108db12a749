"""Domain exceptions for the inventory service."""


class InventoryError(Exception):
    """Base class for all domain errors."""


class CsvFormatError(InventoryError):
    """Raised when an upload cannot be parsed as CSV at all.

    Fatal to the whole import call; nothing is committed.
    """


class UnknownExportFormatError(InventoryError):
    """Raised when an export is requested in an unregistered dialect."""

    def __init__(self, requested: str, available: list[str]) -> None:
        self.requested = requested
        self.available = available
        choices = " or ".join(f"'{name}'" for name in available)
        super().__init__(f"format must be {choices}")


class ProductNotFoundError(InventoryError):
    """Raised when a product id does not exist."""

    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class UploadTooLargeError(InventoryError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Upload of {size} bytes exceeds the {limit} byte limit")


class ProductConflictError(InventoryError):
    """Raised when a create or update breaks a uniqueness constraint."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Product conflicts with an existing product: {detail}")
