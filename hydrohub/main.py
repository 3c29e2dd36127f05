# hydrohub/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from hydrohub.config import settings
from hydrohub.db import Database
from hydrohub.errors import HydroHubError
from hydrohub.logging_config import configure_logging
from hydrohub.middleware import RequestIdMiddleware
from hydrohub.routers import accounts, admin, auth, customers, products, sales, stations, stocks

logger = logging.getLogger(__name__)


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API around one database handle (opened at startup, closed at shutdown)."""
    configure_logging(settings.LOG_LEVEL)
    db = database or Database(settings.DB_URL, echo=settings.DB_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.open()
        db.create_all()
        app.state.db = db
        try:
            yield
        finally:
            db.close()

    app = FastAPI(title="HydroHub API", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(HydroHubError)
    async def domain_error(request: Request, exc: HydroHubError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(IntegrityError)
    async def integrity_error(request: Request, exc: IntegrityError):
        # e.g. two concurrent creations racing for the same generated username
        logger.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(status_code=409, content={"detail": "Conflicting record"})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error(request: Request, exc: SQLAlchemyError):
        logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Server error"})

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(accounts.router)
    app.include_router(customers.router)
    app.include_router(stations.router)
    app.include_router(products.router)
    app.include_router(sales.router)
    app.include_router(stocks.router)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app


app = create_app()
