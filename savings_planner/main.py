"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from savings_planner import __version__
from savings_planner.achievements import routes as achievement_routes
from savings_planner.aggregation import routes as dashboard_routes
from savings_planner.config import settings
from savings_planner.dependencies import build_session
from savings_planner.errors import NotFoundError, ValidationError
from savings_planner.exports import routes as export_routes
from savings_planner.goals import routes as goal_routes
from savings_planner.insights import routes as insight_routes
from savings_planner.rates import routes as rate_routes
from savings_planner.session import SavingsSession

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(session_factory: Callable[[], SavingsSession] = build_session) -> FastAPI:
    """Build the app around a session created by `session_factory`."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = session_factory()
        # Load must finish before any route can persist
        session.load()
        app.state.session = session
        if session.rate_snapshot is None:
            await session.refresh_rate()
        yield

    app = FastAPI(
        title="Savings Planner API",
        description="Savings goals with multi-currency progress tracking",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    # Include routers
    prefix = settings.API_V1_PREFIX
    app.include_router(goal_routes.router, prefix=f"{prefix}/goals", tags=["Goals"])
    app.include_router(rate_routes.router, prefix=f"{prefix}/rates", tags=["Exchange Rates"])
    app.include_router(dashboard_routes.router, prefix=f"{prefix}/dashboard", tags=["Dashboard"])
    app.include_router(insight_routes.router, prefix=f"{prefix}/insights", tags=["Insights"])
    app.include_router(achievement_routes.router, prefix=f"{prefix}/achievements", tags=["Achievements"])
    app.include_router(export_routes.router, prefix=prefix, tags=["Data"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Savings Planner API",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "savings_planner.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
