"""Internal linking check."""

from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..config import settings
from ..models import IssueSeverity, PageRecord, ScanIssue
from ..search.base import get_host
from .base import BaseAnalyzer, SiteContext

# Below this many pages there is little to link to
MIN_SITE_PAGES = 5


class LinksAnalyzer(BaseAnalyzer):
    """Counts links that point at the page's own host."""

    name = "low_internal_links"

    def count_internal_links(self, page: PageRecord, soup: BeautifulSoup) -> int:
        base_host = get_host(page.url)
        if not base_host:
            return 0

        count = 0
        for a in soup.find_all("a", href=True):
            href = a.get("href", "").strip()
            if not href or href.startswith(("javascript:", "mailto:", "tel:", "#")):
                continue
            if get_host(urljoin(page.url, href)) == base_host:
                count += 1
        return count

    def analyze_page(
        self,
        page: PageRecord,
        soup: BeautifulSoup,
        text: str,
        context: SiteContext,
    ) -> List[ScanIssue]:
        if context.total_pages <= MIN_SITE_PAGES:
            return []

        count = self.count_internal_links(page, soup)
        if count >= settings.MIN_INTERNAL_LINKS:
            return []
        return [self.create_issue(
            page,
            issue_type=self.name,
            severity=IssueSeverity.INFO,
            description=self.t(
                "issues.low_internal_links",
                count=count,
                min_links=settings.MIN_INTERNAL_LINKS,
            ),
            current_value=str(count),
            auto_fixable=True,
        )]
