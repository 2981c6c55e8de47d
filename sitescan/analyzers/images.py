"""Image alt text check."""

from typing import List

from bs4 import BeautifulSoup

from ..models import IssueSeverity, PageRecord, ScanIssue
from .base import BaseAnalyzer, SiteContext


class ImagesAnalyzer(BaseAnalyzer):
    """Reports every image without a usable alt attribute."""

    name = "missing_alt"

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        issues: List[ScanIssue] = []
        for img in soup.find_all("img"):
            alt = img.get("alt")
            if alt is not None and alt.strip():
                continue
            issues.append(self.create_issue(
                page,
                issue_type=self.name,
                severity=IssueSeverity.WARNING,
                description=self.t("issues.missing_alt"),
                current_value=str(img)[:100],
                auto_fixable=True,
            ))
        return issues
