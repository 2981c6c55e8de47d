"""Tokenizing, shingling and similarity scoring."""

from .profiles import build_profile, build_profiles
from .scoring import (
    build_snippet,
    calculate_similarity,
    compare_shingles,
    compare_tokens,
    find_top_similarity_matches,
    intersection_size,
    risk_score,
)
from .shingles import build_shingles
from .text import Tokenizer, html_to_text, normalize_text

__all__ = [
    "Tokenizer",
    "build_profile",
    "build_profiles",
    "build_shingles",
    "build_snippet",
    "calculate_similarity",
    "compare_shingles",
    "compare_tokens",
    "find_top_similarity_matches",
    "html_to_text",
    "intersection_size",
    "normalize_text",
    "risk_score",
]
