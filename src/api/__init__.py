# src/api/__init__.py
# =====================
# API Layer — LinguaRelay
#
# Responsibility:
#   - GET  /session           session bootstrap + effective configuration
#   - POST /transcribe-chunk  audio chunk → transcript → translation
#   - POST /recap             running summary of a session
#   - GET  /health            liveness
#
# Public API:
#   create_app(settings, store) → FastAPI

from src.api.routes import create_app  # noqa: F401

__all__ = ["create_app"]
