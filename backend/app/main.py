"""Main FastAPI application for the Life System backend."""
from fastapi import FastAPI, Request

from app.api.routes.blueprint import router as blueprint_router
from app.api.routes.body_scans import router as body_scans_router
from app.api.routes.calendar import router as calendar_router
from app.api.routes.documents import router as documents_router
from app.api.routes.meal_import import router as meal_import_router
from app.api.routes.onboarding import router as onboarding_router
from app.api.routes.systems import router as systems_router
from app.core.config import settings
from app.core.errors import UserFacingError, user_facing_error_handler
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware
from app.observability.client import init_opik
from app.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.add_exception_handler(UserFacingError, user_facing_error_handler)
app.include_router(documents_router)
app.include_router(meal_import_router)
app.include_router(calendar_router)
app.include_router(onboarding_router)
app.include_router(blueprint_router)
app.include_router(body_scans_router)
app.include_router(systems_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
