"""Preview text for ranked prompts."""

import re
from typing import Any, Mapping, Optional

from loguru import logger

from .models import CatalogEntry


EMPTY_PREVIEW = "No preview available"

_SENTENCE = re.compile(r'[^.!?。！？]*[.!?。！？]')
_MESSAGE_FIELDS = ('content', 'text', 'prompt', 'message')


def _message_text(message: Any) -> str:
    if isinstance(message, str):
        return message
    if isinstance(message, Mapping):
        for key in _MESSAGE_FIELDS:
            value = message.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


def content_text(content: Optional[Any]) -> str:
    """Best prompt body available in a record's content field."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, Mapping):
        return _message_text(content)
    if isinstance(content, (list, tuple)):
        for message in content:
            if isinstance(message, Mapping):
                body = message.get('content')
                if isinstance(body, str) and len(body.strip()) > 20:
                    return body
        if content:
            return _message_text(content[0])
        return ""

    logger.debug(f"Unsupported prompt content type: {type(content).__name__}")
    return ""


def truncate(text: str, max_length: int = 300) -> str:
    """Cut at a sentence boundary if one fits, else at a word boundary."""
    if len(text) <= max_length:
        return text

    truncated = ""
    for sentence in _SENTENCE.findall(text):
        if len(truncated) + len(sentence) > max_length:
            break
        truncated += sentence

    if len(truncated) < 100:
        truncated = text[:max_length]
        last_space = truncated.rfind(' ')
        if last_space > max_length * 2 // 3:
            truncated = truncated[:last_space]
        truncated += "..."

    return truncated


def derive_preview(entry: CatalogEntry, max_length: int = 300) -> str:
    """Short text shown alongside a ranked prompt."""
    text = content_text(entry.content)

    if len(text.strip()) < 20:
        text = entry.description

    if len(text.strip()) < 30:
        parts = [entry.description, entry.category, " ".join(entry.tags)]
        combined = " - ".join(p for p in parts if p)
        if len(combined) > len(text):
            text = combined

    text = truncate(text.strip(), max_length)
    return text or EMPTY_PREVIEW
