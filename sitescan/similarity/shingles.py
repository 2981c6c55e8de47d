"""Word n-gram shingling."""

import math
from typing import FrozenSet, Optional, Sequence


def build_shingles(
    tokens: Sequence[str],
    size: int = 5,
    max_shingles: Optional[int] = 1400,
) -> FrozenSet[str]:
    """Build the set of ``size``-token shingles for a token sequence.

    Long documents are sampled with a stride so that at most about
    ``max_shingles`` windows are taken; the last window is always kept so
    the tail of the document still participates in comparisons.
    """
    if size <= 0 or len(tokens) < size:
        return frozenset()

    total_windows = len(tokens) - size + 1
    step = 1
    if max_shingles and total_windows > max_shingles:
        step = math.ceil(total_windows / max_shingles)

    shingles = {
        " ".join(tokens[start:start + size])
        for start in range(0, total_windows, step)
    }
    last_start = total_windows - 1
    shingles.add(" ".join(tokens[last_start:last_start + size]))
    return frozenset(shingles)
