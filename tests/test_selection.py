"""Tests for source-diverse passage selection."""

from collections import Counter

import pytest

from context_rag.retrieval.selection import (
    group_by_source,
    select_diverse,
    source_quota,
)
from context_rag.vectorstore.models import Passage


def _passage(pid: str, source: str, similarity: float) -> Passage:
    return Passage(id=pid, source_name=source, text=f"text {pid}", similarity=similarity)


class TestSourceQuota:
    """Tests for the score-based quota."""

    @pytest.mark.parametrize(
        ("max_score", "expected"),
        [
            (0.95, 5),
            (0.76, 5),
            (0.75, 4),
            (0.70, 4),
            (0.65, 3),
            (0.60, 3),
            (0.55, 2),
            (0.50, 2),
            (0.45, 1),
            (0.10, 1),
        ],
    )
    def test_breakpoints(self, max_score: float, expected: int) -> None:
        """Quota steps down at each breakpoint; bounds are exclusive."""
        assert source_quota(max_score) == expected


class TestGroupBySource:
    """Tests for grouping candidates by source."""

    def test_groups_ordered_by_best_score(self) -> None:
        """Groups are ordered by their best similarity."""
        groups = group_by_source(
            [
                _passage("1", "a.pdf", 0.6),
                _passage("2", "b.pdf", 0.9),
                _passage("3", "a.pdf", 0.7),
            ]
        )
        assert [g.source_name for g in groups] == ["b.pdf", "a.pdf"]
        assert [p.id for p in groups[1].members] == ["3", "1"]

    def test_tie_goes_to_higher_average(self) -> None:
        """Equal best scores are ordered by average score."""
        groups = group_by_source(
            [
                _passage("1", "a.pdf", 0.8),
                _passage("2", "a.pdf", 0.5),
                _passage("3", "b.pdf", 0.8),
                _passage("4", "b.pdf", 0.7),
            ]
        )
        assert [g.source_name for g in groups] == ["b.pdf", "a.pdf"]

    def test_full_tie_keeps_first_appearance(self) -> None:
        """Identical groups keep the order they first appeared in."""
        groups = group_by_source(
            [
                _passage("1", "z.pdf", 0.8),
                _passage("2", "a.pdf", 0.8),
            ]
        )
        assert [g.source_name for g in groups] == ["z.pdf", "a.pdf"]


class TestSelectDiverse:
    """Tests for select_diverse."""

    def test_empty_candidates(self) -> None:
        """No candidates select nothing."""
        assert select_diverse([], 5) == []

    def test_non_positive_budget(self) -> None:
        """A zero budget selects nothing."""
        assert select_diverse([_passage("1", "a.pdf", 0.9)], 0) == []

    def test_single_strong_source_fills_budget(self) -> None:
        """One source above 0.75 may supply all five passages."""
        candidates = [
            _passage(str(i), "Doc1", round(0.95 - i * 0.05, 2)) for i in range(8)
        ]

        selected = select_diverse(candidates, 5)

        assert [p.id for p in selected] == ["0", "1", "2", "3", "4"]
        assert {p.source_name for p in selected} == {"Doc1"}

    def test_many_sources_one_each(self) -> None:
        """Ten equal single-passage sources yield five distinct sources."""
        candidates = [_passage(str(i), f"src{i}", 0.6) for i in range(10)]

        selected = select_diverse(candidates, 5)

        assert len(selected) == 5
        assert len({p.source_name for p in selected}) == 5
        # Equal scores keep first-appearance order
        assert [p.source_name for p in selected] == [f"src{i}" for i in range(5)]

    def test_quota_caps_dominant_source(self) -> None:
        """A source at 0.7 contributes at most four when others can fill in."""
        candidates = [_passage(f"a{i}", "a.pdf", 0.7) for i in range(6)] + [
            _passage("b0", "b.pdf", 0.6),
            _passage("b1", "b.pdf", 0.58),
        ]

        selected = select_diverse(candidates, 5)

        counts = Counter(p.source_name for p in selected)
        assert counts == {"a.pdf": 4, "b.pdf": 1}
        assert selected[-1].id == "b0"

    def test_breadth_before_depth(self) -> None:
        """Lower-ranked sources get a turn before a top source exceeds quota."""
        candidates = [
            _passage("a0", "a.pdf", 0.6),
            _passage("a1", "a.pdf", 0.59),
            _passage("a2", "a.pdf", 0.58),
            _passage("a3", "a.pdf", 0.57),
            _passage("b0", "b.pdf", 0.5),
            _passage("c0", "c.pdf", 0.46),
        ]

        selected = select_diverse(candidates, 5)

        assert {p.source_name for p in selected} == {"a.pdf", "b.pdf", "c.pdf"}
        assert Counter(p.source_name for p in selected)["a.pdf"] == 3

    def test_too_few_candidates_lifts_quota(self) -> None:
        """With fewer than K candidates in total, all of them are returned."""
        candidates = [_passage(f"a{i}", "a.pdf", 0.5 - i * 0.01) for i in range(4)]

        selected = select_diverse(candidates, 5)

        # Quota for 0.5 is 2, but nothing else can use the budget
        assert [p.id for p in selected] == ["a0", "a1", "a2", "a3"]

    def test_quota_holds_with_enough_candidates(self) -> None:
        """A result may fall short of K rather than exceed a quota."""
        candidates = [
            _passage("a0", "a.pdf", 0.5),
            _passage("a1", "a.pdf", 0.49),
            _passage("a2", "a.pdf", 0.48),
            _passage("b0", "b.pdf", 0.47),
            _passage("b1", "b.pdf", 0.46),
            _passage("b2", "b.pdf", 0.3),
        ]

        selected = select_diverse(candidates, 5)

        assert [p.id for p in selected] == ["a0", "a1", "b0", "b1"]

    def test_weak_source_capped_despite_many_candidates(self) -> None:
        """Eight passages from a quota-2 source contribute only two."""
        candidates = [
            _passage(f"a{i}", "a.pdf", 0.5 - i * 0.001) for i in range(8)
        ] + [_passage("b0", "b.pdf", 0.49)]

        selected = select_diverse(candidates, 5)

        counts = Counter(p.source_name for p in selected)
        assert counts == {"a.pdf": 2, "b.pdf": 1}
        assert [p.id for p in selected] == ["a0", "a1", "b0"]

    def test_budget_bound_and_ordering(self) -> None:
        """Never more than K passages, always sorted by similarity."""
        candidates = [
            _passage(f"{s}{i}", f"{s}.pdf", 0.9 - 0.07 * i - 0.01 * n)
            for n, s in enumerate("abcdef")
            for i in range(4)
        ]

        for top_k in range(1, 12):
            selected = select_diverse(candidates, top_k)
            scores = [p.similarity for p in selected]
            assert len(selected) <= top_k
            assert scores == sorted(scores, reverse=True)
            assert len({p.id for p in selected}) == len(selected)

    def test_quota_respected_when_candidates_are_plentiful(self) -> None:
        """With enough quota-eligible candidates no source exceeds its quota."""
        candidates = [
            _passage(f"{s}{i}", f"{s}.pdf", score - 0.01 * i)
            for s, score in (("a", 0.9), ("b", 0.7), ("c", 0.6), ("d", 0.5))
            for i in range(6)
        ]

        selected = select_diverse(candidates, 10)

        counts = Counter(p.source_name for p in selected)
        assert len(selected) == 10
        for source, count in counts.items():
            best = max(p.similarity for p in candidates if p.source_name == source)
            assert count <= source_quota(best)

    def test_selection_is_subset_of_candidates(self) -> None:
        """Selected passages are the candidates themselves."""
        candidates = [_passage(str(i), f"s{i % 3}", 0.5 + i * 0.03) for i in range(9)]

        selected = select_diverse(candidates, 4)

        assert all(p in candidates for p in selected)
