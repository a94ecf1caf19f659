"""Entry point for the live call translation bridge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

import uvicorn
from fastapi import FastAPI

from api.audio_stream import router as audio_stream_router
from api.routes import router as api_router
from bridge.handshake import HandshakeGate
from bridge.registry import SessionRegistry
from config.settings import get_settings, require_bridge_config
from translation.factory import build_adapter

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    require_bridge_config(settings)

    debug_dir = settings.debug_audio_dir if settings.debug_audio_file else None
    registry = SessionRegistry(adapter_factory=partial(build_adapter, debug_audio_dir=debug_dir))
    app.state.registry = registry
    app.state.handshake_gate = HandshakeGate(registry, timeout_seconds=settings.handshake_timeout_seconds)
    try:
        yield
    finally:
        await registry.close_all()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Call Translation Bridge",
    description="Bridges both legs of a phone call to speech-to-speech translation backends.",
    lifespan=lifespan,
)
app.include_router(api_router, prefix="/api")
app.include_router(audio_stream_router)


def main() -> None:
    LOGGER.info("Listening at http://%s:%s", settings.host, settings.ws_port)
    uvicorn.run(app, host=settings.host, port=settings.ws_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
