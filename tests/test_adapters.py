"""
Tests for the search and text-generation adapters.

External APIs are replaced with httpx.MockTransport handlers.
"""

import json

import httpx
import pytest

from portal_worker.adapters import (
    ExpansionClient,
    ParsedExpansions,
    PortalSearchClient,
    RawTextFallback,
    base_expansion,
    outcome_to_expansions,
    parse_expansions,
)
from portal_worker.adapters.prompts import VARIANT_EXPANSION
from portal_worker.config import SearchSettings, TextGenerationSettings
from portal_worker.core.exceptions import SearchError, TextGenerationError


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


class TestPortalSearchClient:
    """Tests for portal discovery."""

    @pytest.fixture
    def settings(self) -> SearchSettings:
        return SearchSettings(api_key="gkey", engine_id="gcx")

    @pytest.mark.asyncio
    async def test_unconfigured_returns_empty_without_request(self):
        client = PortalSearchClient(SearchSettings(), transport=httpx.MockTransport(_unreachable))

        assert await client.search("birth certificate") == []

    @pytest.mark.asyncio
    async def test_maps_items(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"items": [
                {
                    "title": "Apply for Birth Certificate",
                    "link": "https://crsorgi.gov.in/web/index.php",
                    "snippet": "Online registration",
                    "displayLink": "crsorgi.gov.in",
                    "pagemap": {},
                },
                {"title": "Second"},
            ]})

        client = PortalSearchClient(settings, transport=httpx.MockTransport(handler))
        results = await client.search("birth certificate", limit=2)

        assert seen == {"key": "gkey", "cx": "gcx", "q": "birth certificate", "num": "2"}
        assert results[0].to_dict() == {
            "title": "Apply for Birth Certificate",
            "link": "https://crsorgi.gov.in/web/index.php",
            "snippet": "Online registration",
            "displayLink": "crsorgi.gov.in",
        }
        assert results[1].link == ""

    @pytest.mark.asyncio
    async def test_no_items(self, settings):
        client = PortalSearchClient(
            settings,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
        )

        assert await client.search("nothing") == []

    @pytest.mark.parametrize("limit,expected", [
        (None, 5),
        (0, 1),
        (-4, 1),
        (3, 3),
        (10, 10),
        (50, 10),
    ])
    def test_clamp_limit(self, settings, limit, expected):
        assert PortalSearchClient(settings).clamp_limit(limit) == expected

    @pytest.mark.asyncio
    async def test_api_error_status(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": {"code": 403, "message": "API key not valid"}})

        client = PortalSearchClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(SearchError) as exc_info:
            await client.search("q")

        assert exc_info.value.status_code == 403
        assert "API key not valid" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_failure(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = PortalSearchClient(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(SearchError):
            await client.search("q")


class TestExpansionParsing:
    """Tests for reply parsing and fallbacks."""

    def test_json_array(self):
        outcome = parse_expansions('[{"name": "Birth Certificate Correction", "desc": "Fix name"}]')

        assert isinstance(outcome, ParsedExpansions)
        assert outcome.items[0]["name"] == "Birth Certificate Correction"

    def test_code_fenced_array(self):
        outcome = parse_expansions('```json\n[{"name": "Renewal"}]\n```')

        assert outcome == ParsedExpansions(items=[{"name": "Renewal"}])

    @pytest.mark.parametrize("reply", [
        "Here are some variants: new, renewal",
        '{"name": "not a list"}',
        "",
    ])
    def test_non_array_falls_back_to_raw_text(self, reply):
        outcome = parse_expansions(reply)

        assert outcome == RawTextFallback(text=reply)
        assert outcome_to_expansions(outcome, "Ration Card") == [
            {"name": "Ration Card", "desc": reply},
        ]

    def test_base_expansion(self):
        assert base_expansion("Ration Card", None) == [
            {"name": "Ration Card", "variant": None, "desc": "Base flow"},
        ]

    def test_prompt_mentions_service_and_variant(self):
        messages = VARIANT_EXPANSION.to_messages(service_name="Ration Card", variant_type="renewal")

        assert messages[-1]["role"] == "user"
        assert "Service: Ration Card" in messages[-1]["content"]
        assert "Variant: renewal" in messages[-1]["content"]
        assert '{ "name": "", "desc": "", "keywords": [] }' in messages[-1]["content"]


class TestExpansionClient:
    """Tests for the text-generation client."""

    @pytest.fixture
    def settings(self) -> TextGenerationSettings:
        return TextGenerationSettings(api_key="okey")

    @staticmethod
    def _reply(content):
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    @pytest.mark.asyncio
    async def test_unconfigured_uses_base_flow(self):
        client = ExpansionClient(
            TextGenerationSettings(), transport=httpx.MockTransport(_unreachable))

        assert await client.expand("Domicile Certificate", "new") == [
            {"name": "Domicile Certificate", "variant": "new", "desc": "Base flow"},
        ]

    @pytest.mark.asyncio
    async def test_parsed_reply(self, settings):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return self._reply('[{"name": "Duplicate", "desc": "Lost card", "keywords": ["lost"]}]')

        client = ExpansionClient(settings, transport=httpx.MockTransport(handler))
        expansions = await client.expand("Ration Card", "duplicate")

        assert expansions == [{"name": "Duplicate", "desc": "Lost card", "keywords": ["lost"]}]
        assert captured["auth"] == "Bearer okey"
        assert captured["body"]["model"] == "gpt-4o-mini"
        assert "Ration Card" in captured["body"]["messages"][-1]["content"]

    @pytest.mark.asyncio
    async def test_unparseable_reply_wrapped(self, settings):
        client = ExpansionClient(
            settings,
            transport=httpx.MockTransport(lambda r: self._reply("Sorry, I cannot help.")),
        )

        assert await client.expand("Ration Card", None) == [
            {"name": "Ration Card", "desc": "Sorry, I cannot help."},
        ]

    @pytest.mark.asyncio
    async def test_content_parts_are_joined(self, settings):
        parts = [
            {"type": "text", "text": '[{"name": "Renewal",'},
            {"type": "text", "text": ' "desc": "Yearly"}]'},
        ]
        client = ExpansionClient(
            settings, transport=httpx.MockTransport(lambda r: self._reply(parts)))

        assert await client.expand("Ration Card", None) == [{"name": "Renewal", "desc": "Yearly"}]

    @pytest.mark.asyncio
    async def test_non_string_content_wrapped(self, settings):
        client = ExpansionClient(
            settings, transport=httpx.MockTransport(lambda r: self._reply({"name": "x"})))

        assert await client.expand("Ration Card", None) == [
            {"name": "Ration Card", "desc": "{'name': 'x'}"},
        ]

    def test_parse_non_string_reply(self):
        assert parse_expansions(42) == RawTextFallback(text="42")

    @pytest.mark.asyncio
    async def test_missing_content_is_empty_list(self, settings):
        client = ExpansionClient(
            settings,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []})),
        )

        assert await client.expand("Ration Card", None) == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self, settings):
        client = ExpansionClient(
            settings,
            transport=httpx.MockTransport(lambda r: httpx.Response(429, json={})),
        )

        with pytest.raises(TextGenerationError) as exc_info:
            await client.expand("Ration Card", None)

        assert exc_info.value.status_code == 429
