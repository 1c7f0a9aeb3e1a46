# storefront/main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from storefront.config import settings
from storefront.database import engine
from storefront.infrastructure.db_schema import metadata
from storefront.presentation.errors import register_exception_handlers
from storefront.presentation.routers import cart, catalog, orders

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Таблицы созданы")

    yield

    logger.info("Приложение останавливается...")
    await engine.dispose()

app = FastAPI(
    title="Storefront Service",
    description="Каталог, корзина (гостевая и пользовательская) и оформление заказов",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

app.include_router(catalog.products_router, prefix="/api")
app.include_router(catalog.categories_router, prefix="/api")
app.include_router(cart.router, prefix="/api")
app.include_router(orders.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Storefront Service работает"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
