"""
Route registration for the voice tutor API.

Responsibilities:
- Define HTTP endpoints
- Map session errors to status codes (404 unknown, 409 busy, 400 bad input)
- Pull dependencies from app.state
"""

from __future__ import annotations

import base64
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request

from orchestrator.executor import check_backend_available
from orchestrator.events import Notification, StageChanged
from session.backends import BackendFactory
from session.tutor_session import SessionBusyError, SessionStore, TutorSession


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""

    def _store() -> SessionStore:
        return app.state.sessions

    def _session(session_id: str) -> TutorSession:
        try:
            return _store().get(session_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"unknown session {session_id}") from None

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/backend/status")
    async def backend_status() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        backends: BackendFactory = app.state.backends
        generation = backends.generation()
        available = await check_backend_available(generation)
        return {"available": available, "model": generation.model_name}

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @app.post("/sessions", status_code=201)
    async def create_session() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        session = _store().create()
        return {"session_id": session.session_id}

    @app.delete("/sessions/{session_id}", status_code=204)
    async def end_session(session_id: str) -> None: # pyright: ignore[reportUnusedFunction]
        if not _store().remove(session_id):
            raise HTTPException(status_code=404, detail=f"unknown session {session_id}")

    @app.post("/sessions/{session_id}/turns")
    async def run_turn( # pyright: ignore[reportUnusedFunction]
        session_id: str,
        request: Request,
        mode: str | None = None,
        scenario: str | None = None,
        system_prompt: str | None = None,
    ) -> dict[str, Any]:
        session = _session(session_id)
        audio = await request.body()

        parameters: dict[str, Any] = {}
        if scenario:
            parameters["scenario"] = scenario

        stages: list[str] = []

        def _record(notification: Notification) -> None:
            if isinstance(notification, StageChanged):
                stages.append(notification.stage.value)

        unsubscribe = session.bus.subscribe(_record)
        try:
            result = await session.run_turn(
                audio,
                mode,
                system_prompt=system_prompt,
                parameters=parameters,
            )
        except SessionBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from None
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from None
        finally:
            unsubscribe()

        audio_b64 = None
        if result.synthesized_audio:
            audio_b64 = base64.b64encode(result.synthesized_audio).decode("ascii")

        return {
            "success": result.success,
            "transcript": result.transcribed_text,
            "response": result.generated_text,
            "audio_b64": audio_b64,
            "error": result.error_message,
            "stages": stages,
        }

    @app.post("/sessions/{session_id}/cancel")
    async def cancel_turn(session_id: str) -> dict[str, bool]: # pyright: ignore[reportUnusedFunction]
        return {"cancelled": _session(session_id).cancel_turn()}

    @app.put("/sessions/{session_id}/speech-speed")
    async def set_speech_speed( # pyright: ignore[reportUnusedFunction]
        session_id: str,
        payload: dict[str, Any] = Body(...),
    ) -> dict[str, float]:
        session = _session(session_id)
        try:
            speed = float(payload["speed"])
        except (KeyError, TypeError, ValueError):
            raise HTTPException(status_code=400, detail="body must be {\"speed\": <number>}") from None
        return {"speed": session.set_speech_speed(speed)}

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @app.get("/sessions/{session_id}/history")
    async def get_history(session_id: str) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return _session(session_id).export_history()

    @app.put("/sessions/{session_id}/history")
    async def put_history( # pyright: ignore[reportUnusedFunction]
        session_id: str,
        payload: dict[str, Any] = Body(...),
    ) -> dict[str, int]:
        session = _session(session_id)
        try:
            session.import_history(payload)
        except SessionBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from None
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from None
        return {"message_count": len(session.history)}

    @app.delete("/sessions/{session_id}/history")
    async def clear_history(session_id: str) -> dict[str, int]: # pyright: ignore[reportUnusedFunction]
        session = _session(session_id)
        try:
            session.reset()
        except SessionBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from None
        return {"message_count": len(session.history)}
