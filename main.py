from contextlib import asynccontextmanager
from datetime import timedelta
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession
from framework.config import Settings, settings
from framework.response import ResponseModel
from framework.middleware.logging_md import LoggingMiddleware
from framework.logging.logger import LogConfig, get_logger
from framework.exceptions.handler import BusinessException, global_exception_handler
from framework.database.manager import DatabaseManager
from framework.dependencies import get_db
from framework.billing.provider import build_billing_provider
from framework.security import RedisRevocationStore, SessionManager, TokenService
from apps.identity.api.router import router as identity_router
from apps.team.api.router import router as team_router, invite_router
from apps.billing.api.router import router as billing_router
from apps.widgets.api.router import router as widget_router, public_router as widget_config_router

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = app.state.config
    manager = DatabaseManager.get_instance(config)
    await manager.sql.connect()
    if config.SESSION_REVOCATION_ENABLED:
        await manager.redis.connect()
    logger.info(f"{app.title} starting ({config.APP_ENV})")
    yield
    await DatabaseManager.get_instance().close()
    logger.info(f"{app.title} stopped")


def build_session_manager(config: Settings) -> SessionManager:
    token_service = TokenService(
        config.resolve_secret_key(),
        ttl=timedelta(days=config.SESSION_TTL_DAYS),
    )
    revocation_store = None
    if config.SESSION_REVOCATION_ENABLED:
        client = DatabaseManager.get_instance(config).redis.get_client()
        revocation_store = RedisRevocationStore(client)
    return SessionManager(token_service, config, revocation_store)


def create_app(config: Settings = settings) -> FastAPI:
    # Initialize logging configuration
    LogConfig.setup_logging(config)

    app = FastAPI(
        title=config.APP_NAME,
        description=config.APP_DESCRIPTION,
        version=config.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Fails fast in production without SECRET_KEY
    app.state.session_manager = build_session_manager(config)
    app.state.billing_provider = build_billing_provider(config)
    app.state.config = config

    # Register global exception handlers
    app.add_exception_handler(BusinessException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(LoggingMiddleware)

    prefix = config.API_V1_PREFIX
    app.include_router(identity_router, prefix=f"{prefix}/auth", tags=["Identity & Tenant"])
    app.include_router(team_router, prefix=f"{prefix}/team", tags=["Team"])
    app.include_router(invite_router, prefix=f"{prefix}/invite", tags=["Team"])
    app.include_router(billing_router, prefix=f"{prefix}/billing", tags=["Billing"])
    app.include_router(widget_router, prefix=f"{prefix}/widgets", tags=["Widgets"])
    app.include_router(widget_config_router, prefix=f"{prefix}/widget-config", tags=["Public"])

    @app.get("/health", tags=["Health"])
    async def health(db: AsyncSession = Depends(get_db)):
        checks = {
            "secret_key": bool(config.SECRET_KEY),
            "billing": app.state.billing_provider is not None,
            "notifications": config.NOTIFICATION_DRIVER,
        }
        try:
            await db.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except SQLAlchemyError as e:
            logger.error(f"Health check database failure: {e}")
            checks["database"] = "unreachable"
            return JSONResponse(
                status_code=503,
                content=ResponseModel.fail(code=503, message="degraded", data=checks),
            )
        return ResponseModel.success(data=checks, message="healthy")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
