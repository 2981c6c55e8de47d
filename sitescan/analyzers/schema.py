"""Schema.org structured data check."""

from typing import List

from bs4 import BeautifulSoup

from ..models import IssueSeverity, PageRecord, ScanIssue
from .base import BaseAnalyzer, SiteContext


class SchemaAnalyzer(BaseAnalyzer):
    """Flags content without any JSON-LD block."""

    name = "missing_schema"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        if soup.find("script", attrs={"type": "application/ld+json"}) is not None:
            return []
        return [self.create_issue(
            page,
            issue_type=self.name,
            severity=IssueSeverity.INFO,
            description=self.t("issues.missing_schema"),
            auto_fixable=True,
        )]
