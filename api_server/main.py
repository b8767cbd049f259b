import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health
from .api import todos
from .config import GatewayConfig
from .errors import BackendUnavailableError, register_error_handlers
from .schemas.todo import Todo
from .services.todo_manager import close_todo_manager_client, init_todo_manager_client

logger = logging.getLogger(__name__)


def create_app(config: Optional[GatewayConfig] = None) -> FastAPI:
    config = config or GatewayConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Nothing is reachable without the backend, so failing here stops the process.
        try:
            await init_todo_manager_client(config)
        except BackendUnavailableError as e:
            logger.critical(f"{e.message}, shutting down")
            raise
        yield
        await close_todo_manager_client()

    app = FastAPI(title="api-server", lifespan=lifespan)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Health check endpoints for Kubernetes probes, ahead of /{todo_id}
    app.include_router(health.router, tags=["health"])

    # Mount routers
    app.include_router(todos.router, prefix="/api/v1/todos", tags=["todos"])
    # Collection routes without the trailing slash, instead of a 307 redirect
    app.add_api_route("/api/v1/todos", todos.list_todos, methods=["GET"], include_in_schema=False)
    app.add_api_route(
        "/api/v1/todos",
        todos.create_todo,
        methods=["POST"],
        response_model=Todo,
        status_code=201,
        include_in_schema=False,
    )
    app.include_router(todos.router, tags=["todos-root"])

    return app


app = create_app()
