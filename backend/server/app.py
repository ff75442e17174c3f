"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware and logging
- Initialize shared resources (backend factory, vocabulary tracker, session store)
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig
from learning.progress import VocabularyProgress
from observability import logger
from session.backends import BackendFactory
from session.tutor_session import SessionStore, create_session

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    *,
    backends: BackendFactory | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with injected backends or a prebuilt session store
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()
    logger.configure(level=config.log_level, json_logs=config.enable_json_logs)

    app = FastAPI(title="Voice Tutor API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Backends are built lazily, once per process
    backends = backends or BackendFactory(config)
    app.state.backends = backends

    if store is None:
        tracker = VocabularyProgress(config.vocabulary_progress_path)
        store = SessionStore(
            lambda session_id: create_session(
                config,
                backends,
                session_id=session_id,
                tracker=tracker,
            )
        )
    app.state.sessions = store

    # Routes
    register_routes(app)

    return app
