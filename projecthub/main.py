from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from projecthub.api.v1.routes import comment, project, stats, user
from projecthub.core.cache import cache
from projecthub.core.config import Settings, settings
from projecthub.core.exceptions import register_exception_handlers
from projecthub.core.logger import get_logger
from projecthub.core.rate_limit import limiter
from projecthub.db.session import Database

logger = get_logger("main")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up ProjectHub API...", extra={"environment": app_settings.ENVIRONMENT})
        database = Database(app_settings.DATABASE_URL, echo=app_settings.DATABASE_ECHO)
        database.connect()
        if app_settings.CREATE_TABLES_ON_STARTUP:
            await database.create_all()
        app.state.db = database
        try:
            yield
        finally:
            logger.info("Shutting down ProjectHub API...")
            await cache.disconnect()
            await database.dispose()

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.PROJECT_VERSION,
        description="Projects, assigned users and threaded comments",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoints
    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "service": "projecthub-api"
        }

    @app.get("/health/ready")
    async def readiness_check():
        """Readiness check - verify the database is reachable"""
        try:
            await app.state.db.ping()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Readiness check failed", extra={"error": str(e)})
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable", "services": {"database": "error"}},
            )
        return {
            "status": "ready",
            "services": {"database": "ok"},
            "timestamp": datetime.now(timezone.utc),
        }

    # Include routers
    app.include_router(comment.router, prefix="/api/v1/comments")
    app.include_router(project.router, prefix="/api/v1/projects")
    app.include_router(user.router, prefix="/api/v1/users")
    app.include_router(stats.router, prefix="/api/v1/stats")

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn
    uvicorn.run(
        "projecthub.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level="info",
        reload=settings.ENVIRONMENT == "development"
    )
