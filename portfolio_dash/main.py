from contextlib import asynccontextmanager
from fastapi import FastAPI
import structlog
from .logging import setup_logging
from .config import Settings, load_settings
from .gateway.client import PortfolioGateway
from .session import DashboardSession
from .api.routes import router as api_router

log = structlog.get_logger()

def create_app(settings: Settings | None = None, gateway: PortfolioGateway | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or load_settings()
        setup_logging(cfg.log_level, cfg.log_error_file)
        gw = gateway or PortfolioGateway.from_settings(cfg)
        app.state.session = DashboardSession.from_settings(cfg, gw)
        log.info("dashboard_started", base_url=gw.base_url, timeout=gw.timeout)
        await app.state.session.start()
        try:
            yield
        finally:
            if gateway is None:
                await gw.aclose()
            log.info("dashboard_stopped")

    app = FastAPI(title="portfolio-dash", lifespan=lifespan)
    app.include_router(api_router)
    return app

app = create_app()
