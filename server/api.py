"""FastAPI server exposing the Tidy coach endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Body, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logic.validation import ItemCreatedEvent, TidyCommentRequest, parse_payload
from models.errors import ConfigurationError, GenerationError, InvalidRequestError, MalformedAnalysis
from tidy_app.app import TidyCoachApp
from tidy_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

AI_UNAVAILABLE = "AI service unavailable"
INVALID_ANALYSIS = "Analysis returned invalid format"


def create_app(coach_app: TidyCoachApp | None = None) -> FastAPI:
    """Build the FastAPI application around a wired :class:`TidyCoachApp`."""

    coach = coach_app or TidyCoachApp()
    app = FastAPI(title="Tidy Coach", version="0.1.0")
    app.state.coach = coach
    app.add_middleware(
        CORSMiddleware,
        allow_origins=coach.config.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc) or "Missing required fields"})

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        log_event(LOGGER, level=logging.ERROR, event="configuration_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Service is not configured"})

    @app.exception_handler(GenerationError)
    async def generation_handler(request: Request, exc: GenerationError) -> JSONResponse:
        log_event(
            LOGGER,
            level=logging.ERROR,
            event="generation_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return JSONResponse(status_code=502, content={"error": AI_UNAVAILABLE})

    @app.exception_handler(MalformedAnalysis)
    async def malformed_analysis_handler(request: Request, exc: MalformedAnalysis) -> JSONResponse:
        log_event(LOGGER, level=logging.ERROR, event="analysis_malformed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=502, content={"error": INVALID_ANALYSIS})

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "tidy-coach",
            "environment": coach.config.environment or "local",
            "text_provider": coach.config.text_provider,
            "model": coach.config.text_model,
        }

    @app.post("/encouragement")
    def encouragement(payload: Dict[str, Any] = Body(...)) -> dict:
        """Return a one-sentence encouragement for a just-logged item."""

        return coach.encouragement.encourage(payload)

    @app.post("/tidy-comment")
    def tidy_comment(payload: Dict[str, Any] = Body(...)) -> dict:
        """Generate a coach comment from a client-rendered prompt."""

        request = parse_payload(TidyCommentRequest, payload)
        request.require("prompt")
        return {"text": coach.tidy_comment.generate_from_prompt(request.prompt)}

    @app.post("/analyze-space")
    def analyze_space(payload: Dict[str, Any] = Body(...)) -> dict:
        """Analyze a space photo and return the plan plus the after image URL."""

        return coach.space_coach.analyze_space(payload)

    @app.post("/triggers/item-created")
    def item_created(payload: Dict[str, Any] = Body(...)) -> dict:
        """Record-creation notification; outcomes are reported, never raised."""

        event = parse_payload(ItemCreatedEvent, payload)
        return coach.tidy_comment.handle_item_created(event.item_id, event.item)

    return app


_app: FastAPI | None = None


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    global _app
    if _app is None:
        _app = create_app()
    return _app


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "server.api:get_app", factory=True, host="0.0.0.0", port=int(os.getenv("PORT", "8080")), reload=False
    )
