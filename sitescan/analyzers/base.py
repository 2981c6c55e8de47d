"""Base class for per-page SEO checks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup

from ..config import settings
from ..i18n import DEFAULT_LANGUAGE, Translator
from ..models import IssueSeverity, PageRecord, ScanIssue


@dataclass(frozen=True)
class SiteContext:
    """Facts about the whole site that single-page checks need."""
    total_pages: int = 0


class BaseAnalyzer(ABC):
    """A check that inspects one page and reports issues for it."""

    name: str = ""

    def __init__(self):
        self._translator = Translator(settings.LANGUAGE or DEFAULT_LANGUAGE)

    def set_language(self, language: str) -> None:
        self._translator = Translator(language)

    @property
    def language(self) -> str:
        return self._translator.language

    def t(self, key: str, **kwargs) -> str:
        return self._translator(key, **kwargs)

    def create_issue(
        self,
        page: PageRecord,
        issue_type: str,
        severity: IssueSeverity,
        description: str,
        current_value: Optional[str] = None,
        suggested_fix: Optional[str] = None,
        auto_fixable: bool = False,
    ) -> ScanIssue:
        return ScanIssue(
            wp_post_id=page.id,
            page_url=page.url,
            issue_type=issue_type,
            severity=severity,
            description=description,
            current_value=current_value,
            suggested_fix=suggested_fix,
            auto_fixable=auto_fixable,
        )

    @abstractmethod
    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        """Return the issues found on ``page``."""
