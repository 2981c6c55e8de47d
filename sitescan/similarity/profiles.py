"""Per-page token/shingle profiles shared by the detectors."""

from typing import List, Optional, Sequence

from ..config import DetectionConfig
from ..models import PageProfile, PageRecord
from .shingles import build_shingles
from .text import Tokenizer, html_to_text


def build_profile(
    page: PageRecord,
    tokenizer: Tokenizer,
    text: Optional[str] = None,
) -> PageProfile:
    """Build the immutable profile for one page.

    ``text`` may be passed when the caller already extracted the page text.
    """
    config = tokenizer.config
    if text is None:
        text = html_to_text(page.html_body)
    tokens = tokenizer.tokenize(text)
    return PageProfile(
        id=page.id,
        title=page.title,
        url=page.url,
        text=text,
        tokens=tuple(tokens),
        shingles=build_shingles(tokens, config.shingle_size, config.max_shingles),
    )


def build_profiles(
    pages: Sequence[PageRecord],
    config: Optional[DetectionConfig] = None,
) -> List[PageProfile]:
    tokenizer = Tokenizer(config)
    return [build_profile(page, tokenizer) for page in pages]
