import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from routes import mcp, openai, plugin, tools
from services.data_client import create_data_client
from services.dispatcher import Dispatcher
from services.tool_registry import SERVER_DESCRIPTION, SERVER_NAME, SERVER_VERSION, ToolRegistry, build_registry

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    "GET /",
    "POST /handshake",
    "GET /health",
    "GET /tools",
    "POST /execute",
    "POST /tool/call",
    "GET /mcp/tools",
    "POST /mcp/call",
    "GET /openai/functions",
    "POST /openai/execute",
    "GET /.well-known/ai-plugin.json",
    "GET /openapi.json",
    "GET /openapi.yaml",
    "POST /functions/{tool_name}",
]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )


def create_app(
    settings: Optional[Settings] = None,
    data_client: Any = None,
    registry: Optional[ToolRegistry] = None
) -> FastAPI:
    """
    Build the FastAPI app.

    `data_client` is normally left empty and a Supabase client is connected
    on startup; tests pass an in-memory client instead.
    """
    settings = settings or Settings.from_env()
    registry = registry or build_registry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.dispatcher is None:
            client = await create_data_client(settings)
            app.state.dispatcher = Dispatcher(registry, client)
        logger.info("%s started at %s", SERVER_NAME, datetime.now(timezone.utc).isoformat())
        yield
        logger.info("%s shutting down", SERVER_NAME)

    # /openapi.json is served by the plugin surface
    app = FastAPI(
        title=SERVER_NAME,
        description=SERVER_DESCRIPTION,
        version=SERVER_VERSION,
        openapi_url="/docs/openapi.json",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.dispatcher = Dispatcher(registry, data_client) if data_client is not None else None

    allow_any_origin = "*" in settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials=not allow_any_origin,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            logger.warning("404 - Unhandled route: %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not found",
                    "message": f"Cannot {request.method} {request.url.path}",
                    "available_endpoints": AVAILABLE_ENDPOINTS
                }
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in item.get('loc', ()))}: {item.get('msg')}"
            for item in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    async def server_info():
        """Server info and the tools it offers."""
        return {
            "mcp_version": "1.0",
            "name": SERVER_NAME,
            "description": SERVER_DESCRIPTION,
            "version": SERVER_VERSION,
            "tools": [
                {"name": d.name, "description": d.description}
                for d in registry.list_descriptors(include_aliases=True)
            ]
        }

    @app.post("/handshake")
    async def handshake():
        logger.info("Handshake request received")
        return {
            "status": "ok",
            "mcp_version": "1.0",
            "capabilities": {"tools": True}
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    app.include_router(tools.router, tags=["Tools"])
    app.include_router(mcp.router, prefix="/mcp", tags=["MCP"])
    app.include_router(openai.router, prefix="/openai", tags=["OpenAI Functions"])
    app.include_router(plugin.router, tags=["OpenAI Plugin"])

    return app


settings = Settings.from_env()
configure_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
