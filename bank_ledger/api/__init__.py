"""
Bank Ledger API Application Factory
"""

from fastapi import FastAPI
import uvicorn

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging
from .errors import register_error_handlers
from .auth import router as auth_router
from .users import router as users_router
from .accounts import router as accounts_router
from .transactions import router as transactions_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Bank Ledger API",
        description="Custodial ledger for user-owned bank accounts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    register_error_handlers(app)

    # Include routers
    app.include_router(auth_router, prefix="/v1/auth", tags=["Auth"])
    app.include_router(users_router, prefix="/v1/users", tags=["Users"])
    app.include_router(accounts_router, prefix="/v1/accounts", tags=["Accounts"])
    app.include_router(
        transactions_router,
        prefix="/v1/accounts/{account_number}/transactions",
        tags=["Transactions"]
    )

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "bank_ledger_api",
            "version": __version__
        }

    return app


app = create_app()


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, config.log_format)
    uvicorn.run(
        "bank_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
