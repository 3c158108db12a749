"""Product CRUD service."""

from inventory.errors import ProductNotFoundError
from inventory.infra.logging import get_logger
from inventory.models.product import Product
from inventory.schemas.product import ProductCreate, ProductUpdate
from inventory.services.repository import ProductRepository

logger = get_logger(__name__)


class ProductService:
    """Create, read, update and delete products by storage id."""

    def __init__(self, repository: ProductRepository) -> None:
        self.repository = repository

    async def list_products(
        self,
        offset: int = 0,
        limit: int = 50,
        search: str | None = None,
        active_only: bool = False,
    ) -> tuple[list[Product], int]:
        return await self.repository.list_page(
            offset=offset, limit=limit, search=search, active_only=active_only
        )

    async def get_product(self, product_id: int) -> Product:
        """Raises ProductNotFoundError for unknown ids."""
        product = await self.repository.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def create_product(self, data: ProductCreate) -> Product:
        product = await self.repository.create(data.model_dump(mode="json"))
        logger.info("Product created", product_id=product.id, code=product.code)
        return product

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """Apply only the fields present in the request body."""
        values = data.model_dump(mode="json", exclude_unset=True)
        product = await self.repository.update(product_id, values)
        if product is None:
            raise ProductNotFoundError(product_id)
        logger.info("Product updated", product_id=product_id, fields=sorted(values))
        return product

    async def delete_product(self, product_id: int) -> None:
        if not await self.repository.delete(product_id):
            raise ProductNotFoundError(product_id)
        logger.info("Product deleted", product_id=product_id)

    async def delete_all_products(self) -> int:
        deleted = await self.repository.delete_all()
        logger.warning("All products deleted", deleted=deleted)
        return deleted
