"""Text generation backend for strategies that need new copy, using Claude API."""

from __future__ import annotations

import logging
import os
import re

from contentfix.core.config import WriterConfig

logger = logging.getLogger(__name__)

_PREAMBLE = re.compile(r"^(Sure|Certainly|Here's?|Here is|I've|I have)\b[^\n:]*[:\n]\s*", re.IGNORECASE)
_FENCE = re.compile(r"^```[a-z]*\s*\n|\n?```\s*$", re.IGNORECASE | re.MULTILINE)
_AI_TELLS = (
    re.compile(r"in this (optimized|expanded|improved) version[^.]*\.?", re.IGNORECASE),
    re.compile(r"i've (integrated|expanded|added)[^.]*\.?", re.IGNORECASE),
)


def clean_response(text: str) -> str:
    """Strip assistant preambles, code fences and wrapping quotes."""
    if not text:
        return ""
    cleaned = _PREAMBLE.sub("", text.strip())
    cleaned = _FENCE.sub("", cleaned)
    for pattern in _AI_TELLS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip().strip("\"'`").strip()


class ContentWriter:
    """Generates meta descriptions, titles and expanded copy.

    When no API key is configured ``available`` is False and every method
    returns None, so callers must have a deterministic fallback.
    """

    def __init__(self, api_key: str | None = None, config: WriterConfig | None = None):
        self.api_key = api_key if api_key is not None else os.environ.get("ANTHROPIC_API_KEY")
        self.config = config or WriterConfig()
        self._client = None

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        """Lazy-initialize the Anthropic client."""
        if self._client is None:
            try:
                import anthropic
                self._client = anthropic.Anthropic(api_key=self.api_key)
            except ImportError:
                raise ImportError(
                    "Generated copy requires the anthropic package. "
                    "Install with: pip install contentfix[ai]"
                )
        return self._client

    def _complete(self, system: str, prompt: str, max_tokens: int) -> str | None:
        if not self.available:
            return None
        try:
            client = self._get_client()
            response = client.messages.create(
                model=self.config.model,
                max_tokens=min(max_tokens, self.config.max_tokens),
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
            return clean_response(response.content[0].text)
        except Exception as exc:
            logger.warning("Generation backend failed: %s", exc)
            return None

    def meta_description(
        self, title: str, body_text: str, keyword: str = "", budget: int = 135
    ) -> str | None:
        keyword_rule = f"- Include the phrase \"{keyword}\" naturally\n" if keyword else ""
        system = (
            "You write meta descriptions for web pages.\n"
            "- Plain, specific, genuinely useful\n"
            f"- Between 120 and {budget} characters\n"
            f"{keyword_rule}"
            "- No quotation marks\n"
            "- Return ONLY the meta description text"
        )
        prompt = f"Title: {title}\nContent preview: {body_text[:300]}"
        return self._complete(system, prompt, 100)

    def title(self, current: str, body_text: str) -> str | None:
        system = (
            "You edit page titles for search results and human readers.\n"
            "- Between 30 and 60 characters\n"
            "- Keep the original tone and capitalization style\n"
            "- Return ONLY the title"
        )
        prompt = f"Current title: \"{current}\"\nContent context: {body_text[:200]}"
        return self._complete(system, prompt, 50)

    def expand(self, title: str, html: str, target_words: int) -> str | None:
        system = (
            "You are an expert writer extending web articles.\n"
            "- Keep the author's voice and the existing HTML structure\n"
            "- Add substance: examples, explanations, practical detail\n"
            f"- The full article must be {target_words - 50} to {target_words + 50} words\n"
            "- Return ONLY the complete HTML article body"
        )
        prompt = f"Title: {title}\n\nCurrent content:\n{html[:6000]}"
        return self._complete(system, prompt, self.config.max_tokens)
