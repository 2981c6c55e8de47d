"""Pydantic models for the site scanner."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
import uuid

from pydantic import BaseModel, Field, model_validator


class ScanStatus(str, Enum):
    """Status of a scan job."""
    PENDING = "pending"
    PROFILING = "profiling"
    INTERNAL = "internal"
    EXTERNAL = "external"
    CHECKING = "checking"
    COMPLETED = "completed"
    FAILED = "failed"


class IssueSeverity(str, Enum):
    """Severity level for scan issues."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


def _rendered(value: Any) -> Any:
    # WordPress REST returns {"rendered": "..."} for title, content and excerpt
    if isinstance(value, dict):
        return value.get("rendered", "")
    return value


class PageRecord(BaseModel):
    """A single page handed to the scanner."""
    id: int
    url: str = ""
    title: str = ""
    html_body: str = ""
    excerpt: str = ""

    @model_validator(mode="before")
    @classmethod
    def accept_wordpress_shape(cls, data: Any) -> Any:
        """Accept raw WordPress post payloads next to the flat shape."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "html_body" not in data and "content" in data:
            data["html_body"] = _rendered(data.pop("content"))
        if "url" not in data and "link" in data:
            data["url"] = data.pop("link")
        for key in ("title", "excerpt", "html_body"):
            if key in data:
                data[key] = _rendered(data[key]) or ""
        if data.get("url") is None:
            data["url"] = ""
        return data


class SimilarityResult(BaseModel):
    """Jaccard/containment similarity between two shingle sets."""
    jaccard: float = 0.0
    containment: float = 0.0
    score: int = 0


class SimilarityCandidate(BaseModel):
    title: str
    url: Optional[str] = None
    text: str


class SimilarityMatch(BaseModel):
    title: str
    url: Optional[str] = None
    score: int
    jaccard: float
    containment: float
    snippet: str


class PageProfile(BaseModel):
    """Tokens and shingles of one page, built once per scan."""
    model_config = {"frozen": True}

    id: int
    title: str = ""
    url: str = ""
    text: str = ""
    tokens: Tuple[str, ...] = ()
    shingles: FrozenSet[str] = frozenset()

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class InternalMatch(BaseModel):
    """Similarity of one page to another page of the same site."""
    other_page_id: int
    other_title: str = ""
    other_url: str = ""
    risk_score: int
    jaccard: float
    containment: float


class SearchResult(BaseModel):
    """A single organic result returned by a search provider."""
    url: str
    title: str = ""
    snippet: str = ""
    provider: str


class ExternalMatch(BaseModel):
    """An external web page that shares text with a scanned page."""
    source_url: str
    source_title: str
    source_snippet: str = ""
    provider: str
    query: str
    score: int


class ScanIssue(BaseModel):
    """A single issue found during a scan."""
    wp_post_id: Optional[int] = None
    page_url: str
    issue_type: str
    severity: IssueSeverity
    description: str
    current_value: Optional[str] = None
    suggested_fix: Optional[str] = None
    auto_fixable: bool = False


class ScanResult(BaseModel):
    """Complete scan result."""
    pages_scanned: int = 0
    issues: List[ScanIssue] = Field(default_factory=list)
    plagiarism_matches: Dict[int, List[InternalMatch]] = Field(default_factory=dict)
    external_matches: Dict[int, List[ExternalMatch]] = Field(default_factory=dict)


class ScanRequest(BaseModel):
    """Request to scan a set of pages."""
    pages: List[PageRecord]
    language: Optional[str] = None  # nl or en
    external_check: bool = True


class SimilarityRequest(BaseModel):
    """Request to rank candidate texts against one text."""
    text: str
    candidates: List[SimilarityCandidate] = Field(default_factory=list)
    min_score: Optional[int] = None
    limit: int = 3


class ScanJob(BaseModel):
    """State of a background scan."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    status: ScanStatus = ScanStatus.PENDING
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    pages_total: int = 0
    result: Optional[ScanResult] = None
    error_message: Optional[str] = None


class ProgressEvent(BaseModel):
    """SSE progress event."""
    status: ScanStatus
    progress: float = 0.0  # 0-100
    message: str = ""
    pages_total: int = 0
    stage: Optional[str] = None
