"""
Quiz Platform - Guardrails Module
Sanitizing of model-generated text before it is stored or shown
"""
import re
from typing import Any

from app.core.config import settings

# Markup that must never reach a UI that renders text unescaped
TAG_PATTERN = re.compile(r"<[^>]*>")
MARKDOWN_PATTERN = re.compile(r"[*_#`]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def sanitize_text(value: Any, max_length: int | None = None) -> str:
    """
    Strip HTML-like tags and markdown control characters, collapse
    whitespace and cap the length. Non-strings become "".
    """
    if not isinstance(value, str):
        return ""
    limit = max_length or settings.FEEDBACK_MAX_TEXT_LENGTH
    text = TAG_PATTERN.sub("", value)
    text = MARKDOWN_PATTERN.sub("", text)
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    return text[:limit]

