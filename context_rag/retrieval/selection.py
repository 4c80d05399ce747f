"""Source-diverse selection over scored candidates.

Candidates are grouped by source. Each source gets a quota that grows with
its best score, so one highly relevant document may dominate while a
marginal one contributes a single passage. A breadth pass visits every
source once within its quota. Only when fewer candidates qualify than the
budget allows are quotas lifted, and then every candidate is kept.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from context_rag.vectorstore.models import Passage

# (exclusive lower bound on a source's best score, passages allowed)
QUOTA_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (0.75, 5),
    (0.65, 4),
    (0.55, 3),
    (0.45, 2),
)
MIN_QUOTA = 1


def source_quota(max_score: float) -> int:
    """Passages a source may contribute given its best similarity."""
    for threshold, quota in QUOTA_BREAKPOINTS:
        if max_score > threshold:
            return quota
    return MIN_QUOTA


@dataclass
class SourceGroup:
    """Candidates sharing a source name, best first."""

    source_name: str
    order: int
    members: list[Passage] = field(default_factory=list)
    taken: int = 0

    @property
    def max_score(self) -> float:
        return self.members[0].similarity

    @property
    def avg_score(self) -> float:
        return sum(p.similarity for p in self.members) / len(self.members)

    @property
    def quota(self) -> int:
        return source_quota(self.max_score)

    @property
    def remaining(self) -> int:
        return len(self.members) - self.taken

    def take(self, limit: int) -> list[Passage]:
        """Take up to `limit` of the next best untaken members."""
        count = max(0, min(limit, self.remaining))
        picked = self.members[self.taken : self.taken + count]
        self.taken += count
        return picked


def group_by_source(candidates: Iterable[Passage]) -> list[SourceGroup]:
    """Group candidates by source, ordered by descending best score.

    Ties on the best score go to the higher average, then to the source
    that appeared first in the candidate list.
    """
    groups: dict[str, SourceGroup] = {}
    for passage in candidates:
        group = groups.get(passage.source_name)
        if group is None:
            group = SourceGroup(source_name=passage.source_name, order=len(groups))
            groups[passage.source_name] = group
        group.members.append(passage)

    for group in groups.values():
        # Stable: equal scores keep index order
        group.members.sort(key=lambda p: p.similarity, reverse=True)

    return sorted(
        groups.values(),
        key=lambda g: (-g.max_score, -g.avg_score, g.order),
    )


def select_diverse(candidates: Sequence[Passage], top_k: int) -> list[Passage]:
    """Pick at most `top_k` passages, spreading the budget across sources.

    When fewer than `top_k` candidates qualify, quotas are lifted and every
    candidate is returned. Otherwise no source exceeds its quota, even if
    that leaves the result short of `top_k`.

    Args:
        candidates: Usable candidates (non-empty text, above the floor).
        top_k: Result budget.

    Returns:
        Selected passages sorted by similarity, highest first.
    """
    if top_k <= 0 or not candidates:
        return []

    groups = group_by_source(candidates)

    if len(candidates) < top_k:
        # Backfill: too few candidates to be choosy, so take them all
        selected = [p for group in groups for p in group.take(group.remaining)]
    else:
        # Breadth: every source once, within its quota
        selected = []
        for group in groups:
            if len(selected) >= top_k:
                break
            selected.extend(group.take(min(group.quota, top_k - len(selected))))

    selected.sort(key=lambda p: p.similarity, reverse=True)
    return selected[:top_k]
