"""Heading hierarchy check."""

from typing import List

from bs4 import BeautifulSoup

from ..models import IssueSeverity, PageRecord, ScanIssue
from .base import BaseAnalyzer, SiteContext

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


class HeadingsAnalyzer(BaseAnalyzer):
    """Flags headings that skip a level (H2 followed by H4)."""

    name = "heading_hierarchy"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        issues: List[ScanIssue] = []
        last_level = 0
        for heading in soup.find_all(HEADING_TAGS):
            level = int(heading.name[1])
            if last_level > 0 and level > last_level + 1:
                issues.append(self.create_issue(
                    page,
                    issue_type=self.name,
                    severity=IssueSeverity.WARNING,
                    description=self.t("issues.heading_hierarchy", previous=last_level, current=level),
                    current_value=heading.get_text(" ", strip=True)[:100] or None,
                    auto_fixable=True,
                ))
            last_level = level
        return issues
