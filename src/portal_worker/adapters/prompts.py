"""
Prompt templates for the text-generation adapter.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PromptTemplate:
    """
    A reusable prompt template with variable substitution.

    Example:
        >>> template = PromptTemplate(
        ...     name="greet",
        ...     user="Say hello to {name}.",
        ... )
        >>> template.to_messages(name="Asha")
        [{'role': 'user', 'content': 'Say hello to Asha.'}]
    """

    name: str
    user: str
    system: str = ""

    def format_user(self, **kwargs: Any) -> str:
        """Format just the user prompt."""
        return self.user.format(**kwargs) if kwargs else self.user

    def to_messages(self, **kwargs: Any) -> list[dict[str, str]]:
        """Build a chat-completions message list."""
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.format_user(**kwargs)})
        return messages


# Literal braces in the JSON example are doubled for str.format
VARIANT_EXPANSION = PromptTemplate(
    name="variant_expansion",
    user=(
        "You are a government service variant expansion engine.\n"
        "Service: {service_name}\n"
        "Variant: {variant_type}\n"
        "\n"
        "Return JSON array of:\n"
        "[\n"
        ' {{ "name": "", "desc": "", "keywords": [] }}\n'
        "]\n"
        "Only JSON. No explanation."
    ),
)
