"""Application configuration settings."""

from typing import FrozenSet, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


# Dutch function words plus the English ones that leak into Dutch blog copy.
DEFAULT_STOPWORDS: FrozenSet[str] = frozenset({
    "aan", "als", "bij", "dan", "dat", "de", "den", "der", "des", "die",
    "dit", "door", "een", "en", "er", "geen", "het", "hier", "hij", "hoe",
    "hun", "ik", "in", "is", "je", "kan", "kun", "maar", "met", "mijn",
    "na", "naar", "niet", "nog", "nu", "of", "om", "ons", "ook", "op",
    "over", "te", "tot", "uit", "van", "veel", "voor", "want", "was", "wat",
    "we", "wel", "werd", "wie", "wij", "wordt",
    "you", "your", "the", "and", "for", "with", "from", "into", "that", "this",
    "are", "were", "will", "can", "about", "have", "has", "had", "not", "but",
    "our", "out", "per", "via", "www",
})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Shingling
    SHINGLE_SIZE: int = 5
    MAX_SHINGLES: int = 1400
    MIN_TOKEN_LENGTH: int = 3

    # Internal duplicate detection
    INTERNAL_MIN_TOKENS: int = 120
    INTERNAL_MIN_JACCARD: float = 0.18
    INTERNAL_MIN_CONTAINMENT: float = 0.34
    INTERNAL_MIN_RISK_SCORE: int = 35
    MAX_MATCHES_PER_PAGE: int = 3

    # External plagiarism search
    PLAGIARISM_EXTERNAL_CHECK: bool = True
    PLAGIARISM_EXTERNAL_PROVIDER: str = "auto"  # auto, serper, duckduckgo
    SERPER_API_KEY: Optional[str] = None
    SEARCH_COUNTRY: str = "nl"
    SEARCH_LANGUAGE: str = "nl"
    EXTERNAL_MIN_TOKENS: int = 140
    EXTERNAL_MAX_PAGES: int = 10
    EXTERNAL_MAX_QUERIES_PER_PAGE: int = 2
    EXTERNAL_MAX_RESULTS_PER_QUERY: int = 5
    EXTERNAL_QUERY_TIMEOUT: float = 4.5  # seconds per search request
    EXTERNAL_CONCURRENCY: int = 3
    EXTERNAL_MIN_MATCH_SCORE: int = 42

    # Standalone similarity lookups
    SIMILARITY_MIN_SCORE: int = 1

    # Page checks
    THIN_CONTENT_WORDS: int = 300
    TITLE_MAX_LENGTH: int = 60
    META_DESCRIPTION_MIN_LENGTH: int = 50
    MIN_INTERNAL_LINKS: int = 2

    # Connection Pool Limits
    AIOHTTP_CONNECTION_LIMIT: int = 50
    AIOHTTP_LIMIT_PER_HOST: int = 10

    # Scan jobs
    SCAN_TTL: int = 3600  # seconds a finished scan stays in memory
    CORS_ORIGINS: str = "*"

    # Localization
    LANGUAGE: str = "nl"  # Supported: nl, en


class DetectionConfig(BaseModel):
    """Thresholds shared by the tokenizer and both duplicate detectors."""

    model_config = {"frozen": True}

    stopwords: FrozenSet[str] = DEFAULT_STOPWORDS
    min_token_length: int = 3
    shingle_size: int = 5
    max_shingles: Optional[int] = 1400

    internal_min_tokens: int = 120
    internal_min_jaccard: float = 0.18
    internal_min_containment: float = 0.34
    internal_min_risk_score: int = 35
    max_matches_per_page: int = 3

    external_enabled: bool = True
    external_min_tokens: int = 140
    external_max_pages: int = 10
    external_max_queries_per_page: int = 2
    external_query_timeout: float = 4.5
    external_concurrency: int = 3
    external_min_match_score: int = 42

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "DetectionConfig":
        """Build detection thresholds from application settings."""
        source = source or settings
        return cls(
            min_token_length=source.MIN_TOKEN_LENGTH,
            shingle_size=source.SHINGLE_SIZE,
            max_shingles=source.MAX_SHINGLES,
            internal_min_tokens=source.INTERNAL_MIN_TOKENS,
            internal_min_jaccard=source.INTERNAL_MIN_JACCARD,
            internal_min_containment=source.INTERNAL_MIN_CONTAINMENT,
            internal_min_risk_score=source.INTERNAL_MIN_RISK_SCORE,
            max_matches_per_page=source.MAX_MATCHES_PER_PAGE,
            external_enabled=source.PLAGIARISM_EXTERNAL_CHECK,
            external_min_tokens=source.EXTERNAL_MIN_TOKENS,
            external_max_pages=source.EXTERNAL_MAX_PAGES,
            external_max_queries_per_page=source.EXTERNAL_MAX_QUERIES_PER_PAGE,
            external_query_timeout=source.EXTERNAL_QUERY_TIMEOUT,
            external_concurrency=source.EXTERNAL_CONCURRENCY,
            external_min_match_score=source.EXTERNAL_MIN_MATCH_SCORE,
        )


settings = Settings()
