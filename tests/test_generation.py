"""
tests/test_generation.py
=========================
Text Generation Client Tests

Test categories:
    1. Extraction strategies (each in isolation, then ordering)
    2. Request construction (message parts, low-latency model options)
    3. generate(): success / status failure / connection failure with a
       mocked AsyncOpenAI client

All tests are offline: no API calls.
"""

import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.llm.extraction import (
    extract_output_text,
    from_output_items,
    from_output_text,
)
from src.llm.responses_client import build_request, generate, is_low_latency_model


def _status_error(status, payload):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    response = httpx.Response(status, request=request, json=payload)
    return openai.APIStatusError("upstream error", response=response, body=payload.get("error"))


def _mock_client(create):
    client = MagicMock()
    client.responses.create = create
    return client


# ===================================================================
# 1. EXTRACTION
# ===================================================================


class TestExtractionStrategies(unittest.TestCase):

    def test_top_level_output_text(self):
        self.assertEqual(from_output_text({"output_text": "  hola  "}), "hola")

    def test_top_level_blank_is_none(self):
        self.assertIsNone(from_output_text({"output_text": "   "}))

    def test_content_text_parts_joined(self):
        payload = {
            "output": [
                {"type": "reasoning", "content": None},
                {"content": [{"type": "output_text", "text": " one "}]},
                {"content": [{"type": "output_text", "text": "two"}]},
            ]
        }
        self.assertEqual(from_output_items(payload), "one two")

    def test_alternate_output_text_field(self):
        payload = {"output": [{"content": [{"output_text": "alt"}]}]}
        self.assertEqual(from_output_items(payload), "alt")

    def test_nested_data_text(self):
        payload = {"output": [{"content": [{"type": "output_text", "data": {"text": "nested"}}]}]}
        self.assertEqual(from_output_items(payload), "nested")

    def test_nested_data_requires_output_text_type(self):
        payload = {"output": [{"content": [{"type": "refusal", "data": {"text": "no"}}]}]}
        self.assertIsNone(from_output_items(payload))

    def test_first_field_per_part_wins(self):
        payload = {"output": [{"content": [{"text": "a", "output_text": "b"}]}]}
        self.assertEqual(from_output_items(payload), "a")

    def test_malformed_items_skipped(self):
        payload = {"output": [None, "x", {"content": "nope"}, {"content": [None, 3]}]}
        self.assertIsNone(from_output_items(payload))


class TestExtractOutputText(unittest.TestCase):

    def test_top_level_preferred(self):
        payload = {
            "output_text": "aggregated",
            "output": [{"content": [{"text": "part"}]}],
        }
        self.assertEqual(extract_output_text(payload), "aggregated")

    def test_falls_back_to_items(self):
        payload = {"output_text": "", "output": [{"content": [{"text": "part"}]}]}
        self.assertEqual(extract_output_text(payload), "part")

    def test_nothing_found_is_empty_string(self):
        self.assertEqual(extract_output_text({"output": []}), "")
        self.assertEqual(extract_output_text(None), "")
        self.assertEqual(extract_output_text("text"), "")


# ===================================================================
# 2. REQUEST CONSTRUCTION
# ===================================================================


class TestBuildRequest(unittest.TestCase):

    def test_system_and_user_parts(self):
        request = build_request("gpt-4o-mini", "sys", "usr", 100)
        self.assertEqual(request["model"], "gpt-4o-mini")
        self.assertEqual(request["max_output_tokens"], 100)
        roles = [m["role"] for m in request["input"]]
        self.assertEqual(roles, ["system", "user"])
        self.assertEqual(request["input"][1]["content"], [{"type": "input_text", "text": "usr"}])

    def test_user_only(self):
        request = build_request("gpt-4o-mini", None, "usr")
        self.assertEqual([m["role"] for m in request["input"]], ["user"])
        self.assertEqual(request["max_output_tokens"], 256)

    def test_no_prompts_sends_empty_input(self):
        self.assertEqual(build_request("gpt-4o-mini")["input"], "")

    def test_low_latency_family_options(self):
        request = build_request("gpt-5-nano", "sys", "usr")
        self.assertEqual(request["reasoning"], {"effort": "minimal"})
        self.assertEqual(request["text"], {"verbosity": "low"})

    def test_other_models_have_no_reasoning_options(self):
        request = build_request("gpt-4.1-mini", "sys", "usr")
        self.assertNotIn("reasoning", request)
        self.assertNotIn("text", request)

    def test_is_low_latency_model(self):
        self.assertTrue(is_low_latency_model("gpt-5-mini"))
        self.assertFalse(is_low_latency_model("gpt-4o"))
        self.assertFalse(is_low_latency_model(None))


# ===================================================================
# 3. GENERATE
# ===================================================================


class TestGenerate(unittest.IsolatedAsyncioTestCase):

    async def test_success_dict_payload(self):
        create = AsyncMock(return_value={
            "output": [{"content": [{"type": "output_text", "text": "bonjour"}]}],
            "usage": {"output_tokens": 3, "output_tokens_details": {"reasoning_tokens": 0}},
        })
        result = await generate("gpt-5-nano", "sys", "hello", client=_mock_client(create))

        self.assertTrue(result.ok)
        self.assertEqual(result.status, 200)
        self.assertEqual(result.text, "bonjour")
        kwargs = create.await_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-5-nano")
        self.assertEqual(kwargs["reasoning"], {"effort": "minimal"})

    async def test_success_sdk_object_keeps_aggregated_text(self):
        response = MagicMock()
        response.model_dump.return_value = {"output": []}
        response.output_text = "aggregated"
        create = AsyncMock(return_value=response)

        result = await generate("gpt-4o-mini", None, "hi", client=_mock_client(create))
        self.assertEqual(result.text, "aggregated")

    async def test_success_with_no_text_is_not_an_error(self):
        create = AsyncMock(return_value={"output": []})
        result = await generate("gpt-5-nano", "sys", "hi", client=_mock_client(create))
        self.assertTrue(result.ok)
        self.assertEqual(result.text, "")

    async def test_status_error_reports_status_and_body(self):
        payload = {"error": {"message": "Rate limit reached", "type": "requests"}}
        create = AsyncMock(side_effect=_status_error(429, payload))

        result = await generate("gpt-5-nano", "sys", "hi", client=_mock_client(create))
        self.assertFalse(result.ok)
        self.assertEqual(result.status, 429)
        self.assertIn("Rate limit reached", result.body)
        self.assertEqual(result.payload["error"]["message"], "Rate limit reached")
        self.assertEqual(result.text, "")

    async def test_connection_error_has_no_status(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        create = AsyncMock(side_effect=openai.APIConnectionError(request=request))

        result = await generate("gpt-5-nano", "sys", "hi", client=_mock_client(create))
        self.assertFalse(result.ok)
        self.assertIsNone(result.status)


if __name__ == "__main__":
    unittest.main()
