"""
FastAPI application entry point for SolarShare.

Hosts the presence registry and the upload store, serves the REST API and a
WebSocket that pushes registry changes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from solarshare.api.routes import error_response, init_routes, router
from solarshare.api.websocket import ConnectionManager
from solarshare.config import API_HOST, API_PORT, DEFAULT_SAVE_DIR, INACTIVITY_TIMEOUT
from solarshare.errors import ValidationError
from solarshare.presence.registry import PresenceRegistry
from solarshare.transfer.storage import FileStore

logger = logging.getLogger(__name__)

# --- Service singletons ---
registry = PresenceRegistry()
file_store = FileStore(DEFAULT_SAVE_DIR)
ws_manager = ConnectionManager(registry)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log server start and stop."""
    logger.info("Starting SolarShare server...")
    logger.info(
        f"SolarShare ready: inactivity timeout {INACTIVITY_TIMEOUT}s, "
        f"storing uploads in {file_store.root}"
    )
    yield
    logger.info("Shutting down SolarShare server...")


# --- FastAPI app ---
app = FastAPI(
    title="SolarShare",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return error_response(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed {request.method} {request.url.path}: {exc.errors()}")
    return error_response(400, "Missing userId or userName")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=True)
    return error_response(500, "Internal server error")


# Wire up event broadcasting
registry.on_change(ws_manager.handle_event)

# Inject services into routes
init_routes(registry, file_store)
app.include_router(router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await ws_manager.connect(websocket)
    try:
        while True:
            # Keep the connection alive; we don't expect client messages
            await websocket.receive_text()
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception:
        await ws_manager.disconnect(websocket)


def run(host: str = API_HOST, port: int = API_PORT) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    run()
