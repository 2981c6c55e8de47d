"""Internal duplicate content detection across one site's pages."""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import DetectionConfig
from ..models import InternalMatch, PageProfile
from ..similarity.scoring import compare_shingles, risk_score

logger = logging.getLogger(__name__)


class InternalDuplicateDetector:
    """Pairwise shingle comparison of every page against every other page."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()

    def _is_eligible(self, profile: PageProfile) -> bool:
        # Short pages are mostly template text and produce false positives
        return profile.token_count >= self.config.internal_min_tokens

    def _passes_thresholds(self, jaccard: float, containment: float) -> bool:
        return (
            jaccard >= self.config.internal_min_jaccard
            or containment >= self.config.internal_min_containment
        )

    @staticmethod
    def _rank_key(match: InternalMatch):
        return (match.risk_score, match.containment, match.jaccard)

    def detect(self, profiles: Sequence[PageProfile]) -> Dict[int, List[InternalMatch]]:
        """Return the ranked internal matches for every page id."""
        matches: Dict[int, List[InternalMatch]] = {p.id: [] for p in profiles}
        eligible = [p for p in profiles if self._is_eligible(p) and p.shingles]

        compared = 0
        recorded = 0
        for i in range(len(eligible)):
            for j in range(i + 1, len(eligible)):
                page_a = eligible[i]
                page_b = eligible[j]
                if page_a.id == page_b.id:
                    continue

                compared += 1
                similarity = compare_shingles(page_a.shingles, page_b.shingles)
                if not self._passes_thresholds(similarity.jaccard, similarity.containment):
                    continue

                score = risk_score(similarity.jaccard, similarity.containment)
                if score < self.config.internal_min_risk_score:
                    continue

                recorded += 1
                matches[page_a.id].append(InternalMatch(
                    other_page_id=page_b.id,
                    other_title=page_b.title,
                    other_url=page_b.url,
                    risk_score=score,
                    jaccard=similarity.jaccard,
                    containment=similarity.containment,
                ))
                matches[page_b.id].append(InternalMatch(
                    other_page_id=page_a.id,
                    other_title=page_a.title,
                    other_url=page_a.url,
                    risk_score=score,
                    jaccard=similarity.jaccard,
                    containment=similarity.containment,
                ))

        limit = self.config.max_matches_per_page
        for page_id, page_matches in matches.items():
            page_matches.sort(key=self._rank_key, reverse=True)
            matches[page_id] = page_matches[:limit]

        logger.info(
            f"Internal duplicate check: {len(eligible)}/{len(profiles)} pages eligible, "
            f"{compared} pairs compared, {recorded} pairs above threshold"
        )
        return matches
