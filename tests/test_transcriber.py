"""
tests/test_transcriber.py
==========================
Speech-to-Text Client Tests

Test categories:
    1. transcribe_once: multipart fields, language handling, failures
    2. transcribe_with_fallback: primary / fallback policy and error fields

All tests are offline: the AsyncOpenAI client is mocked.
"""

import base64
import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.audio.decoder import DecodeError, DecodedAudio
from src.config import Settings
from src.stt.transcriber import (
    TranscriptionAttempt,
    TranscriptionError,
    transcribe_once,
    transcribe_with_fallback,
)

_AUDIO_B64 = base64.b64encode(b"fake-wav-bytes").decode("ascii")


def _status_error(status, message):
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    payload = {"error": {"message": message}}
    response = httpx.Response(status, request=request, json=payload)
    return openai.APIStatusError(message, response=response, body=payload["error"])


def _mock_client(create):
    client = MagicMock()
    client.audio.transcriptions.create = create
    return client


class TestTranscribeOnce(unittest.IsolatedAsyncioTestCase):

    async def test_success_and_multipart_fields(self):
        create = AsyncMock(return_value=MagicMock(text="hello there"))
        audio = DecodedAudio(b"abc", "audio/wav")

        attempt = await transcribe_once(audio, "gpt-4o-mini-transcribe", "en", client=_mock_client(create))

        self.assertTrue(attempt.ok)
        self.assertEqual(attempt.text, "hello there")
        kwargs = create.await_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini-transcribe")
        self.assertEqual(kwargs["file"], ("chunk.wav", b"abc", "audio/wav"))
        self.assertEqual(kwargs["response_format"], "json")
        self.assertEqual(kwargs["language"], "en")

    async def test_auto_language_omitted(self):
        create = AsyncMock(return_value=MagicMock(text="x"))
        audio = DecodedAudio(b"abc", "audio/webm")

        await transcribe_once(audio, "m", "auto", client=_mock_client(create))

        kwargs = create.await_args.kwargs
        self.assertNotIn("language", kwargs)
        self.assertEqual(kwargs["file"][0], "chunk.webm")

    async def test_status_failure(self):
        create = AsyncMock(side_effect=_status_error(400, "Invalid file format."))
        attempt = await transcribe_once(DecodedAudio(b"abc", "audio/wav"), "m", None, client=_mock_client(create))
        self.assertFalse(attempt.ok)
        self.assertEqual(attempt.status, 400)
        self.assertIn("Invalid file format.", attempt.body)


class TestTranscribeWithFallback(unittest.IsolatedAsyncioTestCase):

    def _settings(self, primary="gpt-4o-mini-transcribe", fallback="gpt-4o-transcribe"):
        return Settings(transcribe_primary_model=primary, transcribe_fallback_model=fallback)

    @patch("src.stt.transcriber.transcribe_once")
    async def test_primary_success_no_fallback(self, mock_once):
        mock_once.return_value = TranscriptionAttempt(ok=True, status=200, text="hi")

        result = await transcribe_with_fallback(_AUDIO_B64, "audio/wav", "auto", settings=self._settings())

        self.assertEqual(result.text, "hi")
        self.assertEqual(result.model, "gpt-4o-mini-transcribe")
        self.assertFalse(result.fallback_tried)
        self.assertEqual(mock_once.await_count, 1)

    @patch("src.stt.transcriber.transcribe_once")
    async def test_primary_failure_uses_fallback_once(self, mock_once):
        mock_once.side_effect = [
            TranscriptionAttempt(ok=False, status=500, body="boom"),
            TranscriptionAttempt(ok=True, status=200, text="recovered"),
        ]

        result = await transcribe_with_fallback(_AUDIO_B64, None, None, settings=self._settings())

        self.assertEqual(result.text, "recovered")
        self.assertEqual(result.model, "gpt-4o-transcribe")
        self.assertTrue(result.fallback_tried)
        models = [c.args[1] for c in mock_once.await_args_list]
        self.assertEqual(models, ["gpt-4o-mini-transcribe", "gpt-4o-transcribe"])

    @patch("src.stt.transcriber.transcribe_once")
    async def test_both_fail_reports_fallback(self, mock_once):
        mock_once.side_effect = [
            TranscriptionAttempt(ok=False, status=500, body="primary down"),
            TranscriptionAttempt(
                ok=False, status=503, body='{"error": {"message": "overloaded"}}',
                payload={"error": {"message": "overloaded"}},
            ),
        ]

        with self.assertRaises(TranscriptionError) as ctx:
            await transcribe_with_fallback(_AUDIO_B64, None, None, settings=self._settings())

        err = ctx.exception
        self.assertTrue(err.fallback_tried)
        self.assertEqual(err.status, 503)
        self.assertEqual(err.model, "gpt-4o-transcribe")
        self.assertEqual(str(err), "overloaded")
        self.assertEqual(mock_once.await_count, 2)

    @patch("src.stt.transcriber.transcribe_once")
    async def test_same_fallback_model_not_retried(self, mock_once):
        mock_once.return_value = TranscriptionAttempt(ok=False, status=401, body="bad key")

        with self.assertRaises(TranscriptionError) as ctx:
            await transcribe_with_fallback(
                _AUDIO_B64, None, None, settings=self._settings(fallback="gpt-4o-mini-transcribe"),
            )

        self.assertEqual(mock_once.await_count, 1)
        self.assertFalse(ctx.exception.fallback_tried)
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(str(ctx.exception), "bad key")

    @patch("src.stt.transcriber.transcribe_once")
    async def test_connection_failure_maps_to_500(self, mock_once):
        mock_once.return_value = TranscriptionAttempt(ok=False, status=None, body=None)

        with self.assertRaises(TranscriptionError) as ctx:
            await transcribe_with_fallback(_AUDIO_B64, None, None, settings=self._settings(fallback=""))

        self.assertEqual(ctx.exception.status, 500)
        self.assertIn("Transcription failed with status", str(ctx.exception))

    @patch("src.stt.transcriber.transcribe_once")
    async def test_decode_error_makes_no_call(self, mock_once):
        with self.assertRaises(DecodeError):
            await transcribe_with_fallback("data:audio/wav;base64", None, None, settings=self._settings())
        mock_once.assert_not_called()


if __name__ == "__main__":
    unittest.main()
