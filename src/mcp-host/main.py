"""MCP Host entry point: service wiring and the /api sub-application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from neuroglia.hosting.web import SubAppConfig, WebApplicationBuilder
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.serialization.json import JsonSerializer

from application.services import ConnectionEventBus, McpConnectionRegistry, McpInvocationService
from application.settings import app_settings, configure_logging

configure_logging(log_level=app_settings.log_level)
log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Mounts the API backend (/api prefix) exposing server lifecycle,
    tool, resource and prompt endpoints.

    Returns:
        Configured FastAPI application
    """
    log.debug("🚀 Creating MCP Host application...")

    builder = WebApplicationBuilder(app_settings=app_settings)

    # Configure core services
    Mediator.configure(builder, ["application.commands", "application.queries"])
    Mapper.configure(builder, ["application.commands", "application.queries"])
    JsonSerializer.configure(builder, ["domain.models"])

    # Configure MCP services (order matters - registry publishes on the bus, invocation reads the registry)
    event_bus = ConnectionEventBus.configure(builder)
    registry = McpConnectionRegistry.configure(builder, event_bus)
    McpInvocationService.configure(builder, registry, event_bus)

    # Add SubApp for API with controllers
    builder.add_sub_app(
        SubAppConfig(
            path="/api",
            name="api",
            title=f"{app_settings.app_name} API",
            description="MCP server connection management and invocation REST API",
            version=app_settings.app_version,
            controllers=["api.controllers"],
            docs_url="/docs",
        )
    )

    # Build the application
    app = builder.build_app_with_lifespan(
        title=app_settings.app_name,
        description="Multi-transport MCP client host",
        version=app_settings.app_version,
        debug=app_settings.debug,
    )

    if app_settings.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    log.info("✅ Application created successfully!")
    log.info(f"📊 API Docs: http://localhost:{app_settings.app_port}/api/docs")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:create_app",
        factory=True,
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=app_settings.debug,
    )
