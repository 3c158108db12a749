"""CSV import and export endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from inventory.api.deps import ImportExport
from inventory.config import settings
from inventory.errors import UnknownExportFormatError, UploadTooLargeError
from inventory.infra.logging import get_logger
from inventory.schemas.product import ProductRead
from inventory.schemas.transfer import (
    ExportRequest,
    ImportResponse,
    RejectedRow,
    UpsertError,
)
from inventory.services.import_export_service import ImportResult

router = APIRouter()
logger = get_logger(__name__)


def _check_size(data: bytes) -> bytes:
    if len(data) > settings.max_upload_bytes:
        raise UploadTooLargeError(len(data), settings.max_upload_bytes)
    return data


def _to_response(result: ImportResult) -> ImportResponse:
    products = [ProductRead.model_validate(p) for p in result.products]
    return ImportResponse(
        message=f"Imported {len(products)} products",
        count=len(products),
        received=result.received,
        matched=result.matched,
        inserted=result.inserted,
        failed=len(result.failures),
        errors=[UpsertError(code=f.code, error=f.error) for f in result.failures],
        rejected_rows=[RejectedRow(row=r.row, errors=r.errors) for r in result.rejections],
        products=products,
    )


async def _json_rows(request: Request) -> list[Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a CSV upload or a JSON array of products",
        )

    rows = body.get("products") if isinstance(body, dict) else body
    if not isinstance(rows, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a CSV upload or a JSON array of products",
        )
    return rows


@router.post(
    "/import",
    response_model=ImportResponse,
    summary="Import products from CSV or JSON",
    description="""
    Upsert products by `code`.

    Accepts either a multipart upload (field `file`), a raw `text/csv` body,
    or a JSON body holding an array of product rows (optionally wrapped as
    `{"products": [...]}`). Rows failing validation are skipped and listed in
    `rejectedRows`; the last row wins when a code repeats.
    """,
)
async def import_products(request: Request, service: ImportExport) -> ImportResponse:
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get(settings.upload_field_name)
        if not isinstance(upload, UploadFile):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing CSV file in form field '{settings.upload_field_name}'",
            )
        data = _check_size(await upload.read())
        logger.info(
            "CSV upload received",
            filename=upload.filename,
            size_bytes=len(data),
        )
        result = await service.import_csv(data)

    elif content_type.startswith("text/csv"):
        data = _check_size(await request.body())
        logger.info("CSV body received", size_bytes=len(data))
        result = await service.import_csv(data)

    else:
        rows = await _json_rows(request)
        logger.info("JSON rows received", rows=len(rows))
        result = await service.import_rows(rows)

    return _to_response(result)


@router.post(
    "/export",
    response_class=Response,
    summary="Export products as CSV",
    responses={200: {"content": {"text/csv": {}}, "description": "CSV document"}},
)
async def export_products(body: ExportRequest, service: ImportExport) -> Response:
    """Render the selected products (all when `products` is empty) as CSV."""
    if not service.formatters.is_registered(body.format):
        raise UnknownExportFormatError(body.format, service.formatters.get_available())

    ids = body.product_ids()
    if body.products and not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="products must be a list of ids or objects with an id",
        )

    result = await service.export(body.format, ids)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
