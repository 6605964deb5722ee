"""Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from coinboard.api.dependencies import build_services
from coinboard.api.error_handlers import validation_exception_handler
from coinboard.api.routes import router
from coinboard.utils.config import config
from coinboard.utils.logger import StructuredLogger

logger = StructuredLogger.from_config("App")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services and run the refresh loop for the app's lifetime."""
    # Startup
    try:
        config.validate()
    except ValueError as e:
        logger.critical("Configuration error", exception=e)
        raise

    services = build_services(config)
    app.state.services = services
    services.scheduler.start()
    yield
    # Shutdown
    services.scheduler.stop()


app = FastAPI(
    title="Coinboard",
    description="Top cryptocurrencies with moving averages, RSI and trend charts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(router, prefix="/api", tags=["dashboard"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
