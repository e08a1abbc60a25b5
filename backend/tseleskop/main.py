"""Main FastAPI application for the Tseleskop backend."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from tseleskop.api.routes.ai import router as ai_router
from tseleskop.api.routes.auth import router as auth_router
from tseleskop.api.routes.friendship import router as friendship_router
from tseleskop.api.routes.goal import router as goal_router
from tseleskop.api.routes.settings import router as settings_router
from tseleskop.api.routes.user import router as user_router
from tseleskop.core.config import settings
from tseleskop.core.errors import register_exception_handlers
from tseleskop.core.logging import configure_logging
from tseleskop.core.middleware import RequestIDMiddleware
from tseleskop.observability.client import init_opik
from tseleskop.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id"],
)
register_exception_handlers(app)
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(goal_router)
app.include_router(friendship_router)
app.include_router(settings_router)
app.include_router(ai_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
