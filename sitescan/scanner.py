"""Site scan orchestration: duplicate detection plus per-page SEO checks."""

import logging
import time
import warnings
from typing import Awaitable, Callable, List, Optional, Sequence

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from .analyzers import (
    PAGE_ANALYZERS,
    BaseAnalyzer,
    ExternalPlagiarismDetector,
    InternalDuplicateDetector,
    SiteContext,
)
from .config import DetectionConfig, settings
from .i18n import Translator
from .models import (
    ExternalMatch,
    InternalMatch,
    IssueSeverity,
    PageProfile,
    PageRecord,
    ProgressEvent,
    ScanIssue,
    ScanResult,
    ScanStatus,
)
from .search import SearchProvider, create_search_provider
from .similarity import Tokenizer, build_profile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]

CRITICAL_SCORE = 70
WARNING_SCORE = 35


def severity_for_score(score: int) -> IssueSeverity:
    """Map a 0-100 similarity score to an issue severity."""
    if score >= CRITICAL_SCORE:
        return IssueSeverity.CRITICAL
    if score >= WARNING_SCORE:
        return IssueSeverity.WARNING
    return IssueSeverity.INFO


def _parse_html(html: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        return BeautifulSoup(html or "", "lxml")


class SiteScanner:
    """Runs every check of a site scan over one corpus of pages."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        provider: Optional[SearchProvider] = None,
        language: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.config = config or DetectionConfig.from_settings()
        if provider is None and self.config.external_enabled:
            provider = create_search_provider()
        self.provider = provider
        self.translator = Translator(language or settings.LANGUAGE)
        self.progress_callback = progress_callback

        self.tokenizer = Tokenizer(self.config)
        self.internal_detector = InternalDuplicateDetector(self.config)
        self.external_detector = ExternalPlagiarismDetector(self.provider, self.config)
        self.analyzers: List[BaseAnalyzer] = [cls() for cls in PAGE_ANALYZERS.values()]
        for analyzer in self.analyzers:
            analyzer.set_language(self.translator.language)

    async def _emit(self, status: ScanStatus, progress: float, pages_total: int) -> None:
        if self.progress_callback is None:
            return
        await self.progress_callback(ProgressEvent(
            status=status,
            progress=progress,
            message=self.translator(f"progress.{status.value}"),
            pages_total=pages_total,
            stage=status.value,
        ))

    async def scan(self, pages: Sequence[PageRecord]) -> ScanResult:
        """Scan a corpus of pages and return every issue found."""
        started = time.time()
        total = len(pages)

        await self._emit(ScanStatus.PROFILING, 5, total)
        profiles = [build_profile(page, self.tokenizer) for page in pages]

        await self._emit(ScanStatus.INTERNAL, 20, total)
        internal = self.internal_detector.detect(profiles)

        await self._emit(ScanStatus.EXTERNAL, 40, total)
        external = await self.external_detector.detect(profiles)

        await self._emit(ScanStatus.CHECKING, 80, total)
        context = SiteContext(total_pages=total)
        issues: List[ScanIssue] = []
        for page, profile in zip(pages, profiles):
            issues.extend(self.analyze_page(
                page,
                profile,
                internal.get(page.id, []),
                external.get(page.id, []),
                context,
            ))

        logger.info(
            f"Scan of {total} pages finished in {time.time() - started:.2f}s "
            f"with {len(issues)} issues"
        )
        await self._emit(ScanStatus.COMPLETED, 100, total)
        return ScanResult(
            pages_scanned=total,
            issues=issues,
            plagiarism_matches=internal,
            external_matches=external,
        )

    def analyze_page(
        self,
        page: PageRecord,
        profile: PageProfile,
        internal_matches: Sequence[InternalMatch],
        external_matches: Sequence[ExternalMatch],
        context: SiteContext,
    ) -> List[ScanIssue]:
        """Collect the issues of one page."""
        issues: List[ScanIssue] = []
        soup = _parse_html(page.html_body)

        for analyzer in self.analyzers:
            try:
                issues.extend(analyzer.analyze_page(page, soup, profile.text, context))
            except Exception as e:
                # Log error but don't break other checks
                logger.error(f"Error in {analyzer.name} for page {page.id}: {e}", exc_info=e)

        for match in internal_matches:
            title = match.other_title or match.other_url
            issues.append(ScanIssue(
                wp_post_id=page.id,
                page_url=page.url,
                issue_type="duplicate_content",
                severity=severity_for_score(match.risk_score),
                description=self.translator(
                    "issues.duplicate_content", title=title, score=match.risk_score
                ),
                current_value=match.other_url or None,
                suggested_fix=self.translator("fixes.duplicate_content", title=title),
                auto_fixable=False,
            ))

        for match in external_matches:
            issues.append(ScanIssue(
                wp_post_id=page.id,
                page_url=page.url,
                issue_type="plagiarism_risk",
                severity=severity_for_score(match.score),
                description=self.translator(
                    "issues.plagiarism_risk", title=match.source_title, score=match.score
                ),
                current_value=match.source_url,
                suggested_fix=self.translator("fixes.plagiarism_risk"),
                auto_fixable=False,
            ))

        return issues


async def scan_site(
    pages: Sequence[PageRecord],
    provider: Optional[SearchProvider] = None,
    config: Optional[DetectionConfig] = None,
    language: Optional[str] = None,
) -> ScanResult:
    """Scan ``pages`` with a one-off :class:`SiteScanner`."""
    scanner = SiteScanner(config=config, provider=provider, language=language)
    return await scanner.scan(pages)
