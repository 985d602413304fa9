"""Tests for LLM listing generation: reply parsing, validation, failure outcomes."""

from __future__ import annotations

import json
import unittest

import httpx
import pytest

from tests.conftest import RecordingTransport, listing_reply, make_analysis, openai_reply

GOOD_FIELDS = {
    "title": "Brass Table Lamp - Vintage Style",
    "description": "Solid brass lamp, works perfectly. Pickup downtown or I can deliver nearby.",
    "category": "Home & Garden",
    "estimatedPrice": "$45",
}


class ParseListingReplyTests(unittest.TestCase):
    def setUp(self):
        self.analysis = make_analysis(labels=[(f"L{i}", 0.9) for i in range(7)])

    def test_plain_json(self):
        from snaplist.services.listing.llm import parse_listing_reply

        draft = parse_listing_reply(listing_reply(GOOD_FIELDS), self.analysis)

        self.assertEqual(draft.title, GOOD_FIELDS["title"])
        self.assertEqual(draft.description, GOOD_FIELDS["description"])
        self.assertEqual(draft.category, "Home & Garden")
        self.assertEqual(draft.price, "$45")
        self.assertEqual(draft.detected_items, ["L0", "L1", "L2", "L3", "L4"])

    def test_code_fenced_json(self):
        from snaplist.services.listing.llm import parse_listing_reply

        draft = parse_listing_reply(listing_reply(GOOD_FIELDS, fenced=True), self.analysis)
        self.assertEqual(draft.price, "$45")

    def test_not_json_is_malformed(self):
        from snaplist.services.listing.errors import MalformedLLMResponse
        from snaplist.services.listing.llm import parse_listing_reply

        with self.assertRaises(MalformedLLMResponse):
            parse_listing_reply("Sure! Here is a great listing for your lamp.", self.analysis)

    def test_json_array_is_malformed(self):
        from snaplist.services.listing.errors import MalformedLLMResponse
        from snaplist.services.listing.llm import parse_listing_reply

        with self.assertRaises(MalformedLLMResponse):
            parse_listing_reply("[1, 2, 3]", self.analysis)

    def test_missing_price_is_incomplete(self):
        from snaplist.services.listing.errors import IncompleteLLMResponse
        from snaplist.services.listing.llm import parse_listing_reply

        fields = {k: v for k, v in GOOD_FIELDS.items() if k != "estimatedPrice"}
        with self.assertRaises(IncompleteLLMResponse) as ctx:
            parse_listing_reply(listing_reply(fields), self.analysis)
        self.assertEqual(ctx.exception.missing_fields, ["estimatedPrice"])

    def test_blank_fields_are_incomplete(self):
        from snaplist.services.listing.errors import IncompleteLLMResponse
        from snaplist.services.listing.llm import parse_listing_reply

        fields = dict(GOOD_FIELDS, title="  ", description="")
        with self.assertRaises(IncompleteLLMResponse) as ctx:
            parse_listing_reply(listing_reply(fields), self.analysis)
        self.assertEqual(ctx.exception.missing_fields, ["title", "description"])

    def test_price_without_number_is_incomplete(self):
        from snaplist.services.listing.errors import IncompleteLLMResponse
        from snaplist.services.listing.llm import parse_listing_reply

        fields = dict(GOOD_FIELDS, estimatedPrice="Make an offer")
        with self.assertRaises(IncompleteLLMResponse):
            parse_listing_reply(listing_reply(fields), self.analysis)

    def test_category_case_is_canonicalized(self):
        from snaplist.services.listing.llm import parse_listing_reply

        draft = parse_listing_reply(listing_reply(dict(GOOD_FIELDS, category="electronics")), self.analysis)
        self.assertEqual(draft.category, "Electronics")

    def test_unknown_category_falls_back_to_classifier(self):
        from snaplist.services.listing.llm import parse_listing_reply

        analysis = make_analysis(labels=[("Office chair", 0.9)])
        draft = parse_listing_reply(listing_reply(dict(GOOD_FIELDS, category="Furniture")), analysis)
        self.assertEqual(draft.category, "Home & Garden")


class NormalizePriceTests(unittest.TestCase):
    def test_variants(self):
        from snaplist.services.listing.llm import normalize_price

        self.assertEqual(normalize_price("$45"), "$45")
        self.assertEqual(normalize_price("45.00"), "$45")
        self.assertEqual(normalize_price("$1,200"), "$1200")
        self.assertEqual(normalize_price("$40-60"), "$40")
        self.assertEqual(normalize_price(79.6), "$80")
        self.assertEqual(normalize_price(25), "$25")

    def test_rejects_non_numbers(self):
        from snaplist.services.listing.llm import normalize_price

        self.assertIsNone(normalize_price("free-ish"))
        self.assertIsNone(normalize_price(True))
        self.assertIsNone(normalize_price(-10))

    def test_out_of_range_numbers(self):
        from snaplist.services.listing.llm import normalize_price

        self.assertIsNone(normalize_price(10**400))
        self.assertIsNone(normalize_price("9" * 400))
        self.assertIsNone(normalize_price(float("nan")))


class _StaticProvider:
    """Provider stand-in returning a fixed reply or raising a fixed error."""

    name = "static"

    def __init__(self, raw_text="", error=None):
        self.raw_text = raw_text
        self.error = error
        self.calls = []

    async def generate(self, prompt, **kwargs):
        from snaplist.services.ai.common.providers.base import ProviderResult

        self.calls.append((prompt, kwargs))
        if self.error is not None:
            raise self.error
        return ProviderResult(raw_text=self.raw_text, model="static-1", provider=self.name)


@pytest.mark.asyncio
async def test_generate_success_passes_fixed_configuration():
    from snaplist.services.listing.llm import LLMListingGenerator, LLMSuccess
    from snaplist.services.listing.prompt import LISTING_SYSTEM_PROMPT

    provider = _StaticProvider(listing_reply(GOOD_FIELDS, fenced=True))
    generator = LLMListingGenerator(provider, model="m", temperature=0.7, max_tokens=800, timeout_seconds=5)

    outcome = await generator.generate(make_analysis(labels=[("Lamp", 0.95)]), item_description="barely used")

    assert isinstance(outcome, LLMSuccess)
    assert outcome.draft.title == GOOD_FIELDS["title"]
    prompt, kwargs = provider.calls[0]
    assert "SELLER DESCRIPTION: barely used" in prompt
    assert kwargs["system_prompt"] == LISTING_SYSTEM_PROMPT
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 800


@pytest.mark.asyncio
async def test_generate_incomplete_reply_is_failure():
    from snaplist.services.listing.errors import IncompleteLLMResponse
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    fields = {k: v for k, v in GOOD_FIELDS.items() if k != "estimatedPrice"}
    generator = LLMListingGenerator(_StaticProvider(listing_reply(fields)))

    outcome = await generator.generate(make_analysis(labels=[("Lamp", 0.95)]))

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, IncompleteLLMResponse)


@pytest.mark.asyncio
async def test_generate_transport_error_is_service_failure():
    from snaplist.services.listing.errors import LLMServiceError
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    generator = LLMListingGenerator(_StaticProvider(error=httpx.ReadTimeout("timed out")))

    outcome = await generator.generate(make_analysis())

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, LLMServiceError)


@pytest.mark.asyncio
async def test_generate_with_openai_provider_wire_format():
    from snaplist.services.ai.common.providers.openai import OpenAIProvider
    from snaplist.services.listing.llm import LLMListingGenerator, LLMSuccess

    transport = RecordingTransport(lambda request: httpx.Response(200, json=openai_reply(listing_reply(GOOD_FIELDS))))
    generator = LLMListingGenerator(OpenAIProvider("sk-test", transport=transport), temperature=0.7, max_tokens=800)

    outcome = await generator.generate(make_analysis(labels=[("Lamp", 0.95)]))

    assert isinstance(outcome, LLMSuccess)
    assert outcome.provider_result.model == "gpt-4o-mini"
    assert outcome.provider_result.prompt_tokens == 120

    sent = transport.requests[0]
    body = json.loads(sent.content)
    assert sent.headers["Authorization"] == "Bearer sk-test"
    assert body["model"] == "gpt-4o-mini"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 800
    assert [m["role"] for m in body["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_generate_with_openai_error_status_is_failure():
    from snaplist.services.ai.common.providers.openai import OpenAIProvider
    from snaplist.services.listing.errors import LLMServiceError
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": {"message": "Rate limit"}}))
    generator = LLMListingGenerator(OpenAIProvider("sk-test", transport=transport))

    outcome = await generator.generate(make_analysis())

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, LLMServiceError)
    assert "429" in str(outcome.error)


@pytest.mark.asyncio
async def test_generate_with_unexpected_reply_shape_is_failure():
    from snaplist.services.ai.common.providers.openai import OpenAIProvider
    from snaplist.services.listing.errors import LLMServiceError
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
    generator = LLMListingGenerator(OpenAIProvider("sk-test", transport=transport))

    outcome = await generator.generate(make_analysis())

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, LLMServiceError)


@pytest.mark.asyncio
async def test_generate_huge_integer_price_is_failure():
    from snaplist.services.listing.errors import IncompleteLLMResponse
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    fields = dict(GOOD_FIELDS, estimatedPrice=10**400)
    generator = LLMListingGenerator(_StaticProvider(listing_reply(fields)))

    outcome = await generator.generate(make_analysis(labels=[("Lamp", 0.95)]))

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, IncompleteLLMResponse)
    assert outcome.error.missing_fields == ["estimatedPrice"]


@pytest.mark.asyncio
async def test_generate_unexpected_error_is_failure():
    from snaplist.services.listing.errors import MalformedLLMResponse
    from snaplist.services.listing.llm import LLMFailure, LLMListingGenerator

    generator = LLMListingGenerator(_StaticProvider(error=RuntimeError("provider bug")))

    outcome = await generator.generate(make_analysis())

    assert isinstance(outcome, LLMFailure)
    assert isinstance(outcome.error, MalformedLLMResponse)
    assert isinstance(outcome.error.__cause__, RuntimeError)
