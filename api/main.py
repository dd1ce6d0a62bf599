"""FastAPI application for the Edge AI assistant."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat.relay import EMPTY_MESSAGE_REPLY, ERROR_REPLY
from config.settings import Settings
from orchestrator import EdgeAssistant
from api.deps import APIError
from api.routes.admin import router as admin_router
from api.routes.chat import router as chat_router

logger = logging.getLogger(__name__)


def _is_chat(request: Request) -> bool:
    return request.url.path.startswith("/api/chat")


def create_app(
    settings: Optional[Settings] = None,
    assistant: Optional[EdgeAssistant] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings (read from the environment if None)
        assistant: Pre-built services, mainly for tests
    """
    settings = settings or (assistant.settings if assistant else Settings.from_env())
    assistant = assistant or EdgeAssistant(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run the anonymous cache sweeper for the life of the app."""
        assistant.start()
        try:
            yield
        finally:
            assistant.stop()

    app = FastAPI(
        title="Edge AI Assistant API",
        description="Chat relay and admin endpoints for the Edge AI site",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.assistant = assistant

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    app.include_router(chat_router)
    app.include_router(admin_router)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies get a 400; chat callers still get a ``reply``."""
        if _is_chat(request):
            return JSONResponse(status_code=400, content={"reply": EMPTY_MESSAGE_REPLY})
        return JSONResponse(status_code=400, content={"error": "Invalid request data"})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Hide internal error details from clients."""
        logger.exception("Unhandled exception: %s", exc)
        if _is_chat(request):
            return JSONResponse(status_code=500, content={"reply": ERROR_REPLY})
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    return app
