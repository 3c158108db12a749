"""Pydantic schemas for request/response validation."""

from inventory.schemas.common import ErrorResponse, HealthResponse
from inventory.schemas.product import (
    AiDescription,
    Money,
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductUpdate,
    Volume,
)
from inventory.schemas.transfer import (
    DeleteAllResponse,
    ExportRequest,
    ImportResponse,
    RejectedRow,
    UpsertError,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "AiDescription",
    "Money",
    "ProductCreate",
    "ProductListResponse",
    "ProductRead",
    "ProductUpdate",
    "Volume",
    "DeleteAllResponse",
    "ExportRequest",
    "ImportResponse",
    "RejectedRow",
    "UpsertError",
]
