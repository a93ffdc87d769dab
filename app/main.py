"""
Entry point van de API
"""

import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.database import Database, create_indexes

from app.controllers.auth_controller import router as auth_router
from app.controllers.profile_controller import router as profile_router
from app.controllers.predictions_controller import router as predictions_router
from app.controllers.leaderboard_controller import router as leaderboard_router
from app.controllers.admin_controller import router as admin_router
from app.controllers.health_controller import router as health_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Parse CORS origins
CORS_ORIGINS = [origin.strip() for origin in settings.cors_origins.split(",")]
CORS_ORIGIN_REGEX = re.compile(r"https://.*\.netlify\.app") if settings.app_env == "production" else None


def is_allowed_origin(origin: str) -> bool:
    """Check if origin is allowed by explicit list or regex pattern."""
    if not origin:
        return False
    if origin in CORS_ORIGINS:
        return True
    if CORS_ORIGIN_REGEX and CORS_ORIGIN_REGEX.match(origin):
        return True
    return False


class CORSMiddleware(BaseHTTPMiddleware):
    """
    CORS middleware die OPTIONS preflights afhandelt vóór de routing.

    Anders faalt een preflight op een endpoint met verplichte query
    parameters met een 400/422.
    """

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin", "")

        if request.method == "OPTIONS":
            if is_allowed_origin(origin):
                return Response(
                    status_code=200,
                    headers={
                        "Access-Control-Allow-Origin": origin,
                        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
                        "Access-Control-Allow-Headers": "Authorization, Content-Type, Accept, Origin, X-Requested-With",
                        "Access-Control-Allow-Credentials": "true",
                        "Access-Control-Max-Age": "86400",  # preflight 24 uur cachen
                    }
                )
            return Response(status_code=403, content="Origin not allowed")

        response = await call_next(request)

        if is_allowed_origin(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await Database.connect()
    await create_indexes()
    yield
    await Database.disconnect()

# De app
app = FastAPI(
    title="Bovenkamer Winterproef API",
    description="Punten, voorspellingen en klassement van de Bovenkamer Winterproef",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(CORSMiddleware)
register_exception_handlers(app)

# Alle routers van de controllers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(predictions_router)
app.include_router(leaderboard_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    # Root endpoint, om te zien dat de API draait
    return {
        "name": "Bovenkamer Winterproef API",
        "version": "1.0.0",
        "docs": "/docs"
    }
