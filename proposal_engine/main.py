"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from proposal_engine.api import router as api_router
from proposal_engine.core.config import get_settings
from proposal_engine.core.engine_context import build_engine_context
from proposal_engine.core.errors import (
    ConfigurationError,
    MalformedInputError,
    ProposalEngineError,
    ProviderError,
)
from proposal_engine.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.engine_context = build_engine_context(settings)
    logger.info(
        f"Proposal Engine started with {app.state.engine_context.backend.name} backend",
        extra={"extra_data": {"corpus_size": len(app.state.engine_context.corpus)}},
    )
    yield


app = FastAPI(
    title="Proposal Engine",
    description="Proposal drafting, win prediction and best-practice critique over hosted LLMs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def status_for_error(error: ProposalEngineError) -> int:
    """HTTP status for a typed error."""
    if isinstance(error, ConfigurationError):
        return 503
    if isinstance(error, ProviderError):
        return 502
    if isinstance(error, MalformedInputError):
        return 400
    return 500


@app.exception_handler(ProposalEngineError)
async def proposal_engine_error_handler(request: Request, exc: ProposalEngineError) -> JSONResponse:
    content = {"error": exc.message}
    if exc.status is not None:
        content["upstreamStatus"] = exc.status
    return JSONResponse(content=content, status_code=status_for_error(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors())
    error = MalformedInputError(f"Invalid request body: {fields}" if fields else "Invalid request body")
    logger.warning(f"{error.message} on {request.url.path}")
    return await proposal_engine_error_handler(request, error)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(content={"error": exc.detail}, status_code=exc.status_code)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


app.include_router(api_router)


def run() -> None:
    """Serve the API with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run("proposal_engine.main:app", host="0.0.0.0", port=get_settings().PORT)
