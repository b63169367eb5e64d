"""FastAPI application entry point for the document QA bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.models.errors import AppError, InternalError
from services.document_ingestion.IngestionService import IngestionService
from server.core.IndexService import IndexService
from server.core.QueryService import QueryService
from server.routers.DocumentRouter import router as document_router
from server.routers.QueryRouter import router as query_router
from server.routers.IndexRouter import router as index_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    helper_config: HelperConfig = app.state.helper_config
    app.state.api_keys = frozenset(helper_config.get_list_val("APP_API_KEYS"))
    if not app.state.api_keys:
        raise ValueError("APP_API_KEYS must contain at least one key.")

    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    rag_client = RAGClientManager(helper_config=helper_config).get_client()
    llm_client = LLMClientManager(helper_config=helper_config).get_client()
    clients = [embed_client, rag_client, llm_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()

    try:
        await check_connections(embed_client, rag_client, llm_client)

        app.state.index_service = IndexService(
            helper_config=helper_config,
            rag_client=rag_client,
            embed_client=embed_client,
        )
        logging.info("Initializing vector index...")
        await app.state.index_service.ensure_index()

        app.state.ingestion_service = IngestionService(
            helper_config=helper_config,
            rag_client=rag_client,
            embed_client=embed_client,
        )
        app.state.query_service = QueryService(
            helper_config=helper_config,
            rag_client=rag_client,
            embed_client=embed_client,
            llm_client=llm_client,
        )
        logging.info("Document QA bridge v%s ready.", app_version, color="green")

        # while the app is running...
        yield
    finally:
        logging.info("Shutting down, closing all clients...")
        for client in clients:
            await client.close()
        logging.info("All clients closed.")


async def check_connections(
    embed_client: EmbedClientInterface,
    rag_client: RAGClientInterface,
    llm_client: LLMClientInterface,
) -> None:
    """Check connectivity to all configured backends on startup.

    Every backend is required: no upload or query can be served without them.

    Raises:
        Exception: If a backend is not reachable or rejects the credential.
    """
    for client in (embed_client, rag_client, llm_client):
        result = await client.do_healthcheck()
        if not result.is_success:
            raise Exception(
                f"{client.get_client_type().upper()} client '{client.get_engine_name()}' is not reachable "
                f"(status {result.status_code})."
            )
        logging.info("%s client '%s' is reachable.", client.get_client_type().upper(), client.get_engine_name())


def _expose_errors(request: Request) -> bool:
    helper_config: HelperConfig | None = getattr(request.app.state, "helper_config", None)
    return helper_config is not None and not helper_config.is_production()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    include_trace = exc.status_code >= 500 and _expose_errors(request)
    if exc.status_code >= 500:
        logging.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logging.warning("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(include_trace=include_trace))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logging.warning("%s %s rejected: invalid request body", request.method, request.url.path)
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": errors})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "message": f"{request.method} {request.url.path}"},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if _expose_errors(request) else "An internal server error occurred"
    error = InternalError(message)
    error.__traceback__ = exc.__traceback__
    return JSONResponse(status_code=500, content=error.to_dict(include_trace=_expose_errors(request)))


def create_app(helper_config: HelperConfig | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        helper_config (HelperConfig | None): Configuration to use; read from the environment when omitted.

    Returns:
        FastAPI: The application. Clients and services are attached to app.state by the lifespan.
    """
    app = FastAPI(
        title="Document QA Bridge",
        description=(
            "Upload PDF/TXT documents and ask questions about them. Documents are chunked, "
            "embedded and stored in a vector index; answers are generated by an LLM from "
            "the best matching chunks."
        ),
        version=app_version,
        lifespan=lifespan,
    )
    app.state.helper_config = helper_config or HelperConfig(logger=logging)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/")
    async def root() -> dict:
        return {
            "message": "Document QA Bridge API",
            "version": app_version,
            "endpoints": {
                "upload": "POST /upload",
                "query": "POST /query",
                "delete": "DELETE /documents/{documentId}",
                "stats": "GET /stats",
                "health": "GET /health",
            },
        }

    app.include_router(document_router)
    app.include_router(query_router)
    app.include_router(index_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    logging.info(
        "Starting Document QA Bridge v%s from root dir: %s on port %d...",
        app_version,
        os.getenv("ROOT_DIR", os.getcwd()),
        port,
    )
    uvicorn.run(app, host="0.0.0.0", port=port)
