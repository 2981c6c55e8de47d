"""Thin content check."""

from typing import List

from bs4 import BeautifulSoup

from ..config import settings
from ..models import IssueSeverity, PageRecord, ScanIssue
from .base import BaseAnalyzer, SiteContext


class ContentAnalyzer(BaseAnalyzer):
    """Analyzer for page word count."""

    name = "thin_content"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        word_count = len(text.split())
        if word_count >= settings.THIN_CONTENT_WORDS:
            return []
        return [self.create_issue(
            page,
            issue_type=self.name,
            severity=IssueSeverity.CRITICAL,
            description=self.t(
                "issues.thin_content",
                count=word_count,
                min_words=settings.THIN_CONTENT_WORDS,
            ),
            current_value=str(word_count),
        )]
