from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import close_pool
from .logging_config import configure_logging
from .settings import settings
from .routes.health import router as health_router
from .routes.categories import router as categories_router
from .routes.items import router as items_router
from .routes.customers import router as customers_router
from .routes.invoices import router as invoices_router

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_pool()


app = FastAPI(
    title="Pizza Shop Billing API",
    version="0.1.0",
    description="Catalog, customers, and invoice issuing for a small food-service shop.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.include_router(health_router)
app.include_router(categories_router, prefix="/api/v1")
app.include_router(items_router, prefix="/api/v1")
app.include_router(customers_router, prefix="/api/v1")
app.include_router(invoices_router, prefix="/api/v1")
