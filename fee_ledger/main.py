import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fee_ledger.api.v1.ledger.router import router as ledger_router
from fee_ledger.api.v1.reports.router import router as reports_router
from fee_ledger.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Fee Ledger Engine")

    # CORS: dashboards call this API from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(ledger_router)
    app.include_router(reports_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
