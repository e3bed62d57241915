import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feeledger.api.v1.balances.router import router as balances_router
from feeledger.api.v1.fee_structures.router import router as fee_structures_router
from feeledger.api.v1.payments.router import router as payments_router
from feeledger.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Fee Payment Reconciliation")

    # CORS: allow the school console frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fee_structures_router)
    app.include_router(payments_router)
    app.include_router(balances_router)

    return app


app = create_app()
