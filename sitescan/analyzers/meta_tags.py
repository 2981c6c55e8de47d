"""Meta description and title checks."""

from typing import List

from bs4 import BeautifulSoup

from ..config import settings
from ..models import IssueSeverity, PageRecord, ScanIssue
from ..similarity.text import html_to_text
from .base import BaseAnalyzer, SiteContext


class MetaDescriptionAnalyzer(BaseAnalyzer):
    """Uses the post excerpt as a stand-in for the meta description."""

    name = "missing_meta_description"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        excerpt = html_to_text(page.excerpt)
        if len(excerpt) >= settings.META_DESCRIPTION_MIN_LENGTH:
            return []
        return [self.create_issue(
            page,
            issue_type=self.name,
            severity=IssueSeverity.CRITICAL,
            description=self.t("issues.missing_meta_description"),
            current_value=excerpt or None,
            auto_fixable=True,
        )]


class TitleLengthAnalyzer(BaseAnalyzer):
    name = "long_title"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        title = html_to_text(page.title)
        if len(title) <= settings.TITLE_MAX_LENGTH:
            return []
        return [self.create_issue(
            page,
            issue_type=self.name,
            severity=IssueSeverity.WARNING,
            description=self.t(
                "issues.long_title",
                length=len(title),
                max_length=settings.TITLE_MAX_LENGTH,
            ),
            current_value=title,
            auto_fixable=True,
        )]
