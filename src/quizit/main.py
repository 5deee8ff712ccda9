import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from quizit import __version__
from quizit.api.quiz import router as quiz_router
from quizit.config import get_settings
from quizit.logging_config import configure_logging
from quizit.telemetry import log_event

configure_logging(level="DEBUG" if get_settings().debug else "INFO")

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Quizit API", version=__version__)
app.include_router(quiz_router)


@app.on_event("startup")
async def _log_startup() -> None:
    settings = get_settings()
    log_event(
        LOGGER,
        "app.startup",
        details={
            "version": __version__,
            "llm_provider": settings.llm_provider,
            "llm_model": settings.llm_model,
            "token_budget": settings.generation_token_budget,
            "max_chunks": settings.max_chunks,
        },
    )


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"
