from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import redis
from stashkeeper.config import settings
from stashkeeper.routers import movements, products, stock
from stashkeeper.services.exceptions import (
    AlreadyDeleted,
    InsufficientStock,
    InvalidUnit,
    NotFound,
    PartialFailure,
    StoreError,
)

# Configurar logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="StashKeeper API",
    description="Controle de estoque: movimentações, compensação automática e conferência",
    version="1.0.0",
    debug=settings.DEBUG,
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Incluir routers
app.include_router(products.router, prefix=settings.API_V1_PREFIX, tags=["products"])
app.include_router(movements.router, prefix=settings.API_V1_PREFIX, tags=["movements"])
app.include_router(stock.router, prefix=settings.API_V1_PREFIX, tags=["stock"])


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidUnit)
async def invalid_unit_handler(request: Request, exc: InvalidUnit):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(InsufficientStock)
async def insufficient_stock_handler(request: Request, exc: InsufficientStock):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(AlreadyDeleted)
async def already_deleted_handler(request: Request, exc: AlreadyDeleted):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PartialFailure)
async def partial_failure_handler(request: Request, exc: PartialFailure):
    logger.error(f"Partial failure on {request.url.path}: {exc} (rollback_succeeded={exc.rollback_succeeded})")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "rollback_succeeded": exc.rollback_succeeded}
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.get("/")
async def root():
    return {"message": "StashKeeper API está funcionando!"}


@app.get("/health")
async def health():
    """Health check básico"""
    return {"status": "healthy"}


def _ping_database() -> None:
    from stashkeeper.database import engine
    from sqlalchemy import text

    with engine.connect() as conn:
        if conn.execute(text("SELECT 1")).scalar() != 1:
            raise RuntimeError("Database query failed")


def _ping_supabase() -> None:
    from stashkeeper.services.supabase_store import PRODUCTS_TABLE, get_supabase_client

    get_supabase_client().table(PRODUCTS_TABLE).select("id").limit(1).execute()


@app.get("/health/db")
async def health_db():
    """Health check do banco SQL (SELECT 1)"""
    try:
        _ping_database()
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": "database", "error": str(e)}
        )
    return {"status": "healthy", "service": "database"}


@app.get("/health/detailed")
async def health_detailed():
    """
    Health check das dependências:
    - database: obrigatório com STORE_BACKEND=sql
    - supabase: obrigatório com STORE_BACKEND=supabase
    - redis: só afeta a conferência em background (degraded)
    """
    checks = {}
    status = "healthy"

    required = {"sql": ("database", _ping_database), "supabase": ("supabase", _ping_supabase)}
    name, ping = required.get(settings.STORE_BACKEND, required["sql"])
    try:
        ping()
        checks[name] = "ok"
    except Exception as e:
        logger.error(f"Health check for {name} failed: {e}")
        checks[name] = f"error: {e}"
        status = "unhealthy"

    try:
        redis.from_url(settings.REDIS_URL).ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {e}"
        if status == "healthy":
            status = "degraded"

    checks["store_backend"] = settings.STORE_BACKEND
    return JSONResponse(
        content={"status": status, "checks": checks},
        status_code=200 if status == "healthy" else 503
    )
