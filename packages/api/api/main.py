"""FastAPI application entry point."""

import os
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import requests
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import Settings, load_settings
from api.routes import router
from chatbot.ChatBot import ChatBot
from chatbot.errors import ChatError
from chatbot.log import get_logger, setup_logging
from chatbot.WorkflowClient import WorkflowClient
from database.ChatRepository import ChatRepository
from database.DatabaseProvider import DatabaseProvider

logger = get_logger(__name__)


def init_state(
    app: FastAPI,
    settings: Settings,
    workflow_session: requests.Session | None = None,
) -> DatabaseProvider:
    """Wire settings, storage, and the chat bot onto ``app.state``.

    Returns:
        The database provider, so the caller can close it on shutdown.
    """
    db_provider = DatabaseProvider(settings.db_path)
    repository = ChatRepository(db_provider.get_connection())
    workflow = WorkflowClient(settings.workflow, session=workflow_session)

    app.state.settings = settings
    app.state.repository = repository
    app.state.bot = ChatBot(repository, workflow)
    return db_provider


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Set up and tear down application-wide resources."""
    settings = load_settings()
    setup_logging(settings.log_level)

    if not settings.workflow.configured:
        logger.warning("workflow_url_missing", hint="set N8N_WEBHOOK_URL")

    db_provider = init_state(app, settings)

    yield

    db_provider.close()


app = FastAPI(
    title="Chat Relay API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
    ],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log slow and failed requests with timing."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    fields = {
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": round(duration_ms),
    }
    if duration_ms > 1000:
        logger.warning("slow_request", **fields)
    elif response.status_code >= 500:
        logger.error("server_error", **fields)
    elif response.status_code >= 400:
        logger.info("client_error", **fields)

    return response


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    """Render a ChatError as its JSON body and status."""
    if exc.is_log_only:
        logger.error("chat_error", code=exc.code, cause=exc.cause)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = ChatError("bad_request:api")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(router)


def serve() -> None:
    """Start the uvicorn server using environment configuration."""
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "3000"))
    uvicorn.run("api.main:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    serve()
