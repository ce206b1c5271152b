"""
FastAPI application entry point
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowengine_chat.api.routes import router, get_app_config
from flowengine_chat.models.config import AppConfig
from flowengine_chat.utils.logging import setup_logging

def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration, loaded from the environment if omitted

    Returns:
        Application with the node routes mounted under ``/api/{api_version}``
    """
    config = config or get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        setup_logging(config.log_level)
        yield

    app = FastAPI(
        title="FlowEngine Chat Model",
        description="Chat completions through the FlowEngine LLM gateway",
        version=config.version,
        debug=config.debug,
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=f"/api/{config.api_version}")
    return app

app = create_app()
