"""Text normalization and tokenization."""

import re
import warnings
from html import unescape
from typing import List, Optional

from bs4 import BeautifulSoup, Comment, MarkupResemblesLocatorWarning

from ..config import DetectionConfig

# Precompiled regex patterns for performance
WHITESPACE_PATTERN = re.compile(r"\s+", re.UNICODE)
ENTITY_PATTERN = re.compile(r"&[a-z0-9#]+;", re.IGNORECASE)
NON_WORD_PATTERN = re.compile(r"[^a-z0-9À-ɏ\s-]", re.IGNORECASE)

_DROPPED_TAGS = ("script", "style", "noscript", "template")


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text or "").strip()


def html_to_text(html: str) -> str:
    """Extract visible text from an HTML fragment or document.

    Entities are decoded before parsing, so escaped markup such as
    ``&lt;b&gt;`` is stripped like a real tag. Scripts, styles and comments
    are removed.
    """
    if not html or not html.strip():
        return ""

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(unescape(html), "lxml")

    for tag in soup.find_all(_DROPPED_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    return collapse_whitespace(soup.get_text(" "))


def normalize_text(text: str) -> str:
    """Lowercase and reduce text to letters, digits, hyphens and single spaces."""
    if not text:
        return ""
    lowered = ENTITY_PATTERN.sub(" ", text.lower())
    return collapse_whitespace(NON_WORD_PATTERN.sub(" ", lowered))


class Tokenizer:
    """Turns page text into the normalized tokens used for shingling."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()

    def tokenize(self, text: str) -> List[str]:
        normalized = normalize_text(text)
        if not normalized:
            return []
        min_length = self.config.min_token_length
        stopwords = self.config.stopwords
        return [
            token for token in normalized.split(" ")
            if len(token) >= min_length and token not in stopwords
        ]

    def tokenize_html(self, html: str) -> List[str]:
        return self.tokenize(html_to_text(html))
