"""
main.py - FastAPI application entrypoint for the Mood Journal API

Purpose:
- Builds the service objects once at startup (sentiment classifier,
  Firestore-backed stores, Vertex recap generator, identity verifier) and
  keeps them on app.state for the request dependencies in dependencies.py.
- Mounts the /entries router and a small unauthenticated /health endpoint.
- Configures logging and the cross-origin policy from Settings.

Run locally:
    uvicorn moodjournal.main:app --reload --port 5005
or:
    python -m moodjournal.main
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import pytz

from .auth import IdentityVerifier, require_bearer_token
from .config import Settings
from .entries import router as entries_router
from .gcp_clients import VertexRecapGenerator, get_firestore_client
from .sentiment import SentimentClassifier
from .store import EntryStore, RecapStore

_logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Construct the shared service objects; Firestore failures leave the stores unset."""
    settings: Settings = app.state.settings
    _logger.info("Mood Journal API starting up (timezone=%s)", settings.local_timezone)

    app.state.classifier = SentimentClassifier()
    app.state.recap_generator = VertexRecapGenerator.from_settings(settings)

    client = get_firestore_client(settings.gcp_project, settings.firestore_database)
    if client:
        app.state.entry_store = EntryStore(client)
        app.state.recap_store = RecapStore(client)
    else:
        _logger.error("Firestore unavailable; entry and recap endpoints will return 500.")
        app.state.entry_store = None
        app.state.recap_store = None

    yield
    _logger.info("Mood Journal API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Mood Journal API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.identity_verifier = IdentityVerifier.from_settings(settings)

    # Registered before CORS so CORS stays outermost and 401s still carry its headers.
    app.middleware("http")(require_bearer_token)

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials="*" not in settings.cors_allow_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(entries_router, prefix="/entries", tags=["entries"])

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Liveness plus whether Firestore was reachable at startup and which model is configured."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(pytz.utc).isoformat(),
            "firestoreAvailable": getattr(request.app.state, "entry_store", None) is not None,
            "vertexModel": settings.vertex_model_name,
        }

    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("moodjournal.main:app", host="0.0.0.0", port=_settings.port)
