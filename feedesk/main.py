from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedesk.api.v1.auth.router import router as auth_router
from feedesk.api.v1.fee_structures.router import router as fee_structures_router
from feedesk.api.v1.fees.router import router as fees_router
from feedesk.api.v1.receipts.router import router as receipts_router
from feedesk.api.v1.scanner.router import router as scanner_router
from feedesk.core.config import settings
from feedesk.core.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging(settings.log_level, settings.log_dir)

    app = FastAPI(title="Fee Collection Desk")

    # CORS: the desk front end runs on a separate origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(fee_structures_router)
    app.include_router(fees_router)
    app.include_router(scanner_router)
    app.include_router(receipts_router)

    return app


app = create_app()
