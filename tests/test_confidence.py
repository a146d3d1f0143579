"""
Tests for the confidence scorer: staircase, recency, roster, blend, labels
Run with: pytest tests/test_confidence.py -v
"""

from datetime import date

import pytest

from totals_edge.core.confidence import (
    INSUFFICIENT_CONFIDENCE,
    RecencyBuckets,
    data_applicability,
    label_for,
    recency_buckets,
    recency_score,
    roster_continuity_score,
    round_half_up,
    sample_size_score,
    score_confidence,
)

AS_OF = date(2025, 6, 1)


# ---------------------------------------------------------------------------
# Sample size
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("n, expected", [
    (0, 0),
    (1, 8),
    (2, 16),
    (3, 25),
    (4, 25),
    (5, 45),
    (6, 45),
    (7, 60),
    (10, 75),
    (14, 75),
    (15, 90),
    (20, 100),
    (250, 100),
])
def test_sample_size_staircase(n, expected):
    assert sample_size_score(n) == expected


def test_sample_size_monotone():
    scores = [sample_size_score(n) for n in range(0, 60)]
    assert scores == sorted(scores)
    assert all(0 <= s <= 100 for s in scores)


# ---------------------------------------------------------------------------
# Recency
# ---------------------------------------------------------------------------

class TestRecency:

    def test_buckets_are_cumulative(self):
        played = [date(2025, 1, 15), date(2023, 1, 15), date(2021, 1, 15), date(2018, 1, 15)]
        buckets = recency_buckets(played, AS_OF)
        assert buckets == RecencyBuckets(within_1y=1, within_3y=2, within_5y=3, total=4)

    def test_future_games_count_as_recent(self):
        buckets = recency_buckets([date(2025, 7, 1)], AS_OF)
        assert buckets.within_1y == 1

    def test_bucket_formula(self):
        assert recency_score(None, RecencyBuckets(1, 2, 3, 4)) == 25

    def test_all_recent(self):
        assert recency_score(None, RecencyBuckets(3, 3, 3, 3)) == 50

    def test_all_old(self):
        assert recency_score(None, RecencyBuckets(0, 0, 0, 6)) == 0

    def test_empty_buckets(self):
        assert recency_score("h2h_1y", RecencyBuckets(0, 0, 0, 0)) == 0

    @pytest.mark.parametrize("segment, expected", [
        ("recency_weighted", 90),
        ("h2h_10y", 75),
        ("h2h_20y", 55),
        ("h2h_all", 40),
        ("hybrid_form", 20),
        ("insufficient", 10),
        ("h2h_3y", 50),   # not in the lookup
        (None, 50),
    ])
    def test_segment_lookup(self, segment, expected):
        assert recency_score(segment) == expected


# ---------------------------------------------------------------------------
# Roster continuity
# ---------------------------------------------------------------------------

class TestRosterScore:

    def test_both_unknown_is_neutral(self):
        assert roster_continuity_score(None, None) == 50

    def test_missing_side_counts_as_neutral(self):
        assert roster_continuity_score(80.0, None) == 65
        assert roster_continuity_score(None, 20.0) == 35

    def test_average(self):
        assert roster_continuity_score(80.0, 60.0) == 70

    def test_half_rounds_up(self):
        assert roster_continuity_score(85.0, 90.0) == 88


# ---------------------------------------------------------------------------
# Blend and labels
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("score, label", [
    (100, "Excellent"),
    (80, "Excellent"),
    (79, "Good"),
    (60, "Good"),
    (59, "Fair"),
    (40, "Fair"),
    (39, "Low"),
    (20, "Low"),
    (19, "Insufficient"),
    (0, "Insufficient"),
])
def test_labels(score, label):
    assert label_for(score) == label


@pytest.mark.parametrize("x, expected", [(2.5, 3), (0.5, 1), (1.49, 1), (50.0, 50)])
def test_round_half_up(x, expected):
    assert round_half_up(x) == expected


class TestScoreConfidence:

    def test_hybrid_convention(self):
        # 29 pooled games at the 0.5 hybrid multiplier -> effective n 14
        result = score_confidence(14, "hybrid_form")
        assert result.factors.sample_size_score == 75
        assert result.factors.recency_score == 20
        assert result.factors.roster_continuity_score == 50
        assert result.score == 51
        assert result.label == "Fair"

    def test_buckets_override_segment_lookup(self):
        result = score_confidence(
            20, "h2h_all",
            home_continuity=80.0, away_continuity=80.0,
            buckets=RecencyBuckets(20, 20, 20, 20),
        )
        assert result.factors.recency_score == 50
        assert result.score == 79
        assert result.label == "Good"

    def test_recency_override(self):
        result = score_confidence(3, "h2h_1y", recency_override=100.0)
        assert result.factors.recency_score == 100
        assert result.score == 55

    def test_score_bounds(self):
        top = score_confidence(40, "recency_weighted", 100.0, 100.0, recency_override=100)
        bottom = score_confidence(0, None, 0.0, 0.0, buckets=RecencyBuckets(0, 0, 0, 0))
        assert top.score == 100
        assert bottom.score == 0

    def test_more_games_never_lowers_score(self):
        scores = [score_confidence(n, "h2h_10y", 60.0, 40.0).score for n in range(0, 30)]
        assert scores == sorted(scores)

    def test_insufficient_constant(self):
        assert INSUFFICIENT_CONFIDENCE.to_dict() == {"score": 0, "label": "Insufficient", "factors": None}

    def test_to_dict_includes_factors(self):
        d = score_confidence(14, "hybrid_form").to_dict()
        assert d["factors"] == {
            "sample_size_score": 75,
            "recency_score": 20,
            "roster_continuity_score": 50,
        }


class TestDataApplicability:

    def test_high(self):
        assert data_applicability("h2h_10y", 80.0, 90.0) == (80, "High")

    def test_med(self):
        assert data_applicability("h2h_20y", 50.0, 50.0) == (53, "Med")

    def test_low(self):
        assert data_applicability("hybrid_form") == (35, "Low")
