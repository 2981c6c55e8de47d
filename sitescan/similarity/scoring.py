"""Jaccard/containment similarity scoring."""

from typing import AbstractSet, List, Optional, Sequence

from ..config import DetectionConfig
from ..models import SimilarityCandidate, SimilarityMatch, SimilarityResult
from .shingles import build_shingles
from .text import Tokenizer, collapse_whitespace


def intersection_size(left: AbstractSet[str], right: AbstractSet[str]) -> int:
    """Count common members, probing the larger set with the smaller one."""
    small, large = (left, right) if len(left) <= len(right) else (right, left)
    return sum(1 for item in small if item in large)


def risk_score(jaccard: float, containment: float) -> int:
    return int(round(max(jaccard, containment) * 100))


def compare_shingles(left: AbstractSet[str], right: AbstractSet[str]) -> SimilarityResult:
    """Compare two shingle sets.

    Jaccard underrates a short text embedded in a long one, containment
    (overlap over the smaller set) catches it, so the score is the max of both.
    """
    if not left or not right:
        return SimilarityResult()

    intersection = intersection_size(left, right)
    if intersection == 0:
        return SimilarityResult()

    union = len(left) + len(right) - intersection
    jaccard = intersection / union if union > 0 else 0.0
    containment = intersection / min(len(left), len(right))
    return SimilarityResult(
        jaccard=jaccard,
        containment=containment,
        score=risk_score(jaccard, containment),
    )


def compare_tokens(
    left_tokens: Sequence[str],
    right_tokens: Sequence[str],
    config: Optional[DetectionConfig] = None,
) -> SimilarityResult:
    config = config or DetectionConfig()
    size = config.shingle_size
    if len(left_tokens) < size or len(right_tokens) < size:
        return SimilarityResult()
    return compare_shingles(
        build_shingles(left_tokens, size, config.max_shingles),
        build_shingles(right_tokens, size, config.max_shingles),
    )


def calculate_similarity(
    left_text: str,
    right_text: str,
    config: Optional[DetectionConfig] = None,
) -> SimilarityResult:
    """Score how much of two plain texts is shared."""
    tokenizer = Tokenizer(config)
    return compare_tokens(
        tokenizer.tokenize(left_text),
        tokenizer.tokenize(right_text),
        tokenizer.config,
    )


def build_snippet(text: str, max_chars: int = 280) -> str:
    """Shorten text to ``max_chars`` on a word boundary."""
    clean = collapse_whitespace(text)
    if len(clean) <= max_chars:
        return clean
    cut = clean[:max_chars]
    last_space = cut.rfind(" ")
    return f"{(cut[:last_space] if last_space > 0 else cut).strip()}..."


def find_top_similarity_matches(
    text: str,
    candidates: Sequence[SimilarityCandidate],
    min_score: int = 1,
    limit: int = 3,
    config: Optional[DetectionConfig] = None,
) -> List[SimilarityMatch]:
    """Rank candidate texts by similarity to ``text``."""
    if not text.strip() or not candidates:
        return []

    tokenizer = Tokenizer(config)
    tokens = tokenizer.tokenize(text)
    matches: List[SimilarityMatch] = []
    for candidate in candidates:
        similarity = compare_tokens(
            tokens, tokenizer.tokenize(candidate.text), tokenizer.config
        )
        if similarity.score < min_score:
            continue
        matches.append(SimilarityMatch(
            title=candidate.title,
            url=candidate.url,
            score=similarity.score,
            jaccard=similarity.jaccard,
            containment=similarity.containment,
            snippet=build_snippet(candidate.text),
        ))

    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:limit]
