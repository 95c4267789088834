"""Ordered content extraction rules for loosely specified response bodies.

Each rule inspects a decoded JSON document and either returns the text
payload or declines with ``None``. ``extract_content`` tries the rules in
priority order and stops at the first one that yields content.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeAlias

ExtractionRule: TypeAlias = Callable[[Any], str | None]


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def text_field(document: Any) -> str | None:
    """Top-level ``text`` string, as returned by plain completion servers."""
    if not isinstance(document, dict):
        return None
    return _non_empty(document.get("text"))


def response_field(document: Any) -> str | None:
    """Top-level ``response`` string, as returned by Ollama-style servers."""
    if not isinstance(document, dict):
        return None
    return _non_empty(document.get("response"))


def first_choice_message(document: Any) -> str | None:
    """``choices[0].message.content``, as returned by chat-completion servers."""
    if not isinstance(document, dict):
        return None
    choices = document.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    if not isinstance(message, dict):
        return None
    return _non_empty(message.get("content"))


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    text_field,
    response_field,
    first_choice_message,
)


def extract_content(
    document: Any, rules: Sequence[ExtractionRule] = DEFAULT_RULES
) -> str | None:
    """Return the content yielded by the first matching rule, or None."""
    for rule in rules:
        content = rule(document)
        if content is not None:
            return content
    return None
