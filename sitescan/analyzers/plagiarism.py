"""External plagiarism detection through web search."""

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..config import DetectionConfig
from ..models import ExternalMatch, PageProfile, SearchResult
from ..search.base import SearchProvider, get_host
from ..similarity.text import Tokenizer, collapse_whitespace, normalize_text
from ..utils import run_bounded

logger = logging.getLogger(__name__)

SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]\s+")
WRAPPING_QUOTES_PATTERN = re.compile(r"^[\"“”'`]+|[\"“”'`]+$")

QUERY_MIN_CHARS = 85
QUERY_MAX_CHARS = 240
QUERY_MIN_TOKENS = 10
FALLBACK_WINDOW = 18
FALLBACK_STEP = 9

EXACT_QUERY_MIN_CHARS = 45
EXACT_QUERY_FLOOR = 88
PHRASE_FLOORS = ((7, 68), (6, 56))

SEARCH_ENGINE_HOSTS = ("duckduckgo.com",)


def extract_queries(text: str, tokenizer: Tokenizer, max_queries: int = 2) -> List[str]:
    """Pick the most distinctive sentences of a page as search queries.

    Sentences of 85-240 characters with at least 10 tokens are ranked by
    their number of distinct tokens. When too few qualify, 18-token windows
    of the token stream fill the remaining slots.
    """
    normalized = collapse_whitespace(text)
    if not normalized or max_queries <= 0:
        return []

    scored: List[Tuple[int, str]] = []
    for sentence in SENTENCE_SPLIT_PATTERN.split(normalized):
        sentence = sentence.strip()
        if not (QUERY_MIN_CHARS <= len(sentence) <= QUERY_MAX_CHARS):
            continue
        tokens = tokenizer.tokenize(sentence)
        if len(tokens) < QUERY_MIN_TOKENS:
            continue
        scored.append((len(set(tokens)), sentence))
    # stable sort keeps document order among equally distinctive sentences
    scored.sort(key=lambda item: item[0], reverse=True)

    selected: List[str] = []
    seen: Set[str] = set()

    def add(candidate: str) -> None:
        key = normalize_text(candidate)
        if key and key not in seen:
            seen.add(key)
            selected.append(candidate)

    for _, sentence in scored:
        if len(selected) >= max_queries:
            break
        add(WRAPPING_QUOTES_PATTERN.sub("", sentence))

    if len(selected) < max_queries:
        tokens = tokenizer.tokenize(normalized)
        for start in range(0, len(tokens) - FALLBACK_WINDOW + 1, FALLBACK_STEP):
            if len(selected) >= max_queries:
                break
            candidate = " ".join(tokens[start:start + FALLBACK_WINDOW])
            if len(candidate) >= QUERY_MIN_CHARS:
                add(candidate)

    return selected[:max_queries]


def contains_phrase(query_tokens: Sequence[str], haystack: str, min_words: int) -> bool:
    """Whether ``haystack`` contains any ``min_words`` consecutive query tokens."""
    if len(query_tokens) < min_words or not haystack:
        return False
    for start in range(len(query_tokens) - min_words + 1):
        if " ".join(query_tokens[start:start + min_words]) in haystack:
            return True
    return False


def score_match(query: str, title: str, snippet: str, tokenizer: Tokenizer) -> int:
    """Score a search result against the query that found it (0-100).

    Token overlap sets the base score. A literal match of the whole query, or
    of a 6-7 token phrase, raises it to a fixed floor.
    """
    target_text = f"{title} {snippet}"
    query_tokens = tokenizer.tokenize(query)
    target_tokens = tokenizer.tokenize(target_text)
    if not query_tokens or not target_tokens:
        return 0

    query_set = set(query_tokens)
    target_set = set(target_tokens)
    overlap = len(query_set & target_set)
    score = int(round(overlap / max(len(query_set), len(target_set)) * 100))

    normalized_query = normalize_text(query)
    normalized_target = normalize_text(target_text)
    if len(normalized_query) >= EXACT_QUERY_MIN_CHARS and normalized_query in normalized_target:
        score = max(score, EXACT_QUERY_FLOOR)
    for min_words, floor in PHRASE_FLOORS:
        if contains_phrase(query_tokens, normalized_target, min_words):
            score = max(score, floor)

    return min(100, score)


def is_own_domain(url: str, own_hosts: Iterable[str]) -> bool:
    host = get_host(url)
    if not host:
        return False
    for own in own_hosts:
        if host == own or host.endswith(f".{own}") or own.endswith(f".{host}"):
            return True
    return False


def _is_search_engine_host(host: str) -> bool:
    return any(engine in host for engine in SEARCH_ENGINE_HOSTS)


class ExternalPlagiarismDetector:
    """Searches the web for sentences of the site's pages and scores the hits."""

    def __init__(
        self,
        provider: Optional[SearchProvider],
        config: Optional[DetectionConfig] = None,
    ):
        self.provider = provider
        self.config = config or DetectionConfig()
        self.tokenizer = Tokenizer(self.config)

    def _select_pages(self, profiles: Sequence[PageProfile]) -> List[PageProfile]:
        eligible = [
            p for p in profiles
            if p.token_count >= self.config.external_min_tokens
        ]
        eligible.sort(key=lambda p: p.token_count, reverse=True)
        return eligible[:self.config.external_max_pages]

    async def _search(self, query: str, exclude_hosts: List[str]) -> List[SearchResult]:
        # the timeout bounds each request, fallback requests included
        return await self.provider.guarded_search(
            query, exclude_hosts, timeout=self.config.external_query_timeout
        )

    async def detect(self, profiles: Sequence[PageProfile]) -> Dict[int, List[ExternalMatch]]:
        """Return the ranked external matches for every page id."""
        matches: Dict[int, List[ExternalMatch]] = {p.id: [] for p in profiles}
        if not self.config.external_enabled or self.provider is None or not profiles:
            return matches

        own_hosts: Set[str] = {get_host(p.url) for p in profiles} - {""}
        exclude_hosts = sorted(own_hosts)

        tasks: List[Tuple[int, str]] = []
        for profile in self._select_pages(profiles):
            for query in extract_queries(
                profile.text, self.tokenizer, self.config.external_max_queries_per_page
            ):
                tasks.append((profile.id, query))
        if not tasks:
            return matches

        logger.info(
            f"External plagiarism check: {len(tasks)} queries via {self.provider.name} "
            f"(concurrency {self.config.external_concurrency})"
        )

        async def run_task(task: Tuple[int, str]) -> List[SearchResult]:
            return await self._search(task[1], exclude_hosts)

        found_per_task = await run_bounded(
            tasks, self.config.external_concurrency, run_task
        )

        best_by_page: Dict[int, Dict[str, ExternalMatch]] = {p.id: {} for p in profiles}
        for (page_id, query), found in zip(tasks, found_per_task):
            by_url = best_by_page[page_id]
            for result in found or []:
                if not result.url or is_own_domain(result.url, own_hosts):
                    continue
                host = get_host(result.url)
                if not host or _is_search_engine_host(host):
                    continue

                score = score_match(query, result.title, result.snippet, self.tokenizer)
                if score < self.config.external_min_match_score:
                    continue
                existing = by_url.get(result.url)
                if existing is not None and existing.score >= score:
                    continue

                by_url[result.url] = ExternalMatch(
                    source_url=result.url,
                    source_title=result.title or result.url,
                    source_snippet=result.snippet or "",
                    provider=result.provider,
                    query=query,
                    score=score,
                )

        limit = self.config.max_matches_per_page
        for page_id, by_url in best_by_page.items():
            ranked = sorted(by_url.values(), key=lambda m: m.score, reverse=True)
            matches[page_id] = ranked[:limit]

        return matches
