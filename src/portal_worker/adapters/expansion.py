"""
Service variant expansion through a text-generation API.

The model is asked for a JSON array of expansions. Its reply is parsed
into either ParsedExpansions or RawTextFallback; callers turn either
outcome into the expansion list returned to clients.
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx

from portal_worker.adapters.prompts import VARIANT_EXPANSION
from portal_worker.config.settings import TextGenerationSettings
from portal_worker.core.exceptions import TextGenerationError
from portal_worker.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsedExpansions:
    """The reply parsed as a JSON array."""

    items: list[Any]


@dataclass(frozen=True)
class RawTextFallback:
    """The reply was not a JSON array; the raw text is kept."""

    text: str


ExpansionOutcome = ParsedExpansions | RawTextFallback


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped

    lines = stripped.splitlines()[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_expansions(text: str) -> ExpansionOutcome:
    """
    Parse a model reply.

    Args:
        text: Raw reply content

    Returns:
        ParsedExpansions for a JSON array, RawTextFallback otherwise
    """
    if not isinstance(text, str):
        return RawTextFallback(text=str(text))

    try:
        data = json.loads(_strip_code_fence(text))
    except ValueError:
        return RawTextFallback(text=text)

    if not isinstance(data, list):
        return RawTextFallback(text=text)

    return ParsedExpansions(items=data)


def base_expansion(service_name: Any, variant_type: Any) -> list[dict[str, Any]]:
    """Pass-through expansion used when generation is not configured."""
    return [{"name": service_name, "variant": variant_type, "desc": "Base flow"}]


def outcome_to_expansions(outcome: ExpansionOutcome, service_name: Any) -> list[Any]:
    """Turn a parse outcome into the client-facing expansion list."""
    if isinstance(outcome, ParsedExpansions):
        return outcome.items
    return [{"name": service_name, "desc": outcome.text}]


class ExpansionClient:
    """
    Expands a service name and variant into related service flows.

    Example:
        >>> client = ExpansionClient(settings.text_generation)
        >>> await client.expand("Birth Certificate", "correction")
    """

    def __init__(
        self,
        settings: TextGenerationSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    async def expand(self, service_name: Any, variant_type: Any) -> list[Any]:
        """
        Produce expansions for a service variant.

        Returns:
            Parsed expansions, a wrapped raw reply, or the base expansion
            when generation is not configured

        Raises:
            TextGenerationError: If the API call itself fails
        """
        if not self.is_configured:
            logger.debug("Text generation not configured, using base expansion")
            return base_expansion(service_name, variant_type)

        messages = VARIANT_EXPANSION.to_messages(
            service_name=service_name,
            variant_type=variant_type,
        )
        reply = await self.complete(messages)
        outcome = parse_expansions(reply)

        if isinstance(outcome, RawTextFallback):
            logger.warning("Expansion reply was not a JSON array, wrapping raw text")

        return outcome_to_expansions(outcome, service_name)

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """
        Call the chat completions endpoint.

        Returns:
            The first choice's message content, or "[]" when absent

        Raises:
            TextGenerationError: On transport failure or a non-success status
        """
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}
        body = {"model": self.settings.model, "messages": messages}

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.settings.endpoint, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise TextGenerationError(f"Generation request failed: {e}") from e

        if response.status_code >= 400:
            raise TextGenerationError(
                "Generation API error",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TextGenerationError(
                "Generation API returned a non-JSON response",
                status_code=response.status_code,
            ) from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        # Some models answer with a list of typed content parts
        if isinstance(content, list):
            content = "".join(
                part.get("text") or ""
                for part in content
                if isinstance(part, dict)
            )

        return str(content) if content else "[]"
