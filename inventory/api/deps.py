"""FastAPI dependencies for dependency injection.

Provides:
- Database session per request
- Product repository over that session
- Header alias table
- Service objects built from the above
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.header_aliases import HeaderAliasTable, load_header_aliases
from inventory.infra.database import get_db_session
from inventory.services.import_export_service import ImportExportService
from inventory.services.product_service import ProductService
from inventory.services.repository import ProductRepository, SqlProductRepository


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session committed when the request succeeds."""
    async with get_db_session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_repository(db: DbSession) -> ProductRepository:
    """Product repository bound to the request's session."""
    return SqlProductRepository(db)


def get_aliases() -> HeaderAliasTable:
    """Header alias table (loaded once, then cached)."""
    return load_header_aliases()


Repository = Annotated[ProductRepository, Depends(get_repository)]
Aliases = Annotated[HeaderAliasTable, Depends(get_aliases)]


async def get_import_export_service(
    repository: Repository,
    aliases: Aliases,
) -> ImportExportService:
    return ImportExportService(repository=repository, aliases=aliases)


async def get_product_service(repository: Repository) -> ProductService:
    return ProductService(repository)


ImportExport = Annotated[ImportExportService, Depends(get_import_export_service)]
Products = Annotated[ProductService, Depends(get_product_service)]
