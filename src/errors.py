"""
src/errors.py
==============
Shared upstream failure type — LinguaRelay

Transcription, translation and recap failures all carry the upstream HTTP
status and raw response body so the API layer can build a diagnostic
failure response.
"""

BODY_SNIPPET_CHARS: int = 500


class UpstreamError(Exception):
    """Raised when a provider call fails after retry/fallback is exhausted."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
        model: str | None = None,
    ):
        self.message = message
        # An empty 200 response is still a failure for the client
        self.status = status if status and status >= 400 else 500
        self.upstream_status = status
        self.body = body
        self.model = model
        super().__init__(message)

    def body_snippet(self, limit: int = BODY_SNIPPET_CHARS) -> str | None:
        if self.body is None:
            return None
        return str(self.body)[:limit]


def upstream_message(
    payload: object,
    body: str | None,
    fallback: str,
) -> str:
    """
    Pick the most useful error message from a provider response.

    Prefers ``error.message`` in the JSON payload, then the raw body,
    then ``fallback``.
    """
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    if body:
        return body
    return fallback
