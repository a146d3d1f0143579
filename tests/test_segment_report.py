"""
Tests for the all-segments report and its recommendation rule
Run with: pytest tests/test_segment_report.py -v
"""

from datetime import date

import pytest

from totals_edge.core.interfaces import TeamRef
from totals_edge.services.segment_report import (
    SegmentReportRow,
    build_segment_report,
    recommend_segment,
)

AS_OF = date(2025, 6, 1)
HOME = TeamRef("BOS")
AWAY = TeamRef("LAL")


@pytest.fixture
def spread_store(store, key, make_obs):
    store.add_h2h(key, make_obs([220, 224], 2025))
    store.add_h2h(key, make_obs([210, 215, 219], 2023))
    store.add_h2h(key, make_obs([200, 202, 204, 206, 208, 210], 2012))
    store.add_h2h(key, make_obs([190, 192, 194, 196], 1995))
    return store


def _rows(report):
    return {r.segment_key: r for r in report.rows}


class TestBuildSegmentReport:

    def test_counts_per_segment(self, spread_store):
        report = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF)
        counts = {k: r.n_games for k, r in _rows(report).items()}
        assert counts == {
            "h2h_1y": 2, "h2h_3y": 5, "h2h_5y": 5,
            "h2h_10y": 5, "h2h_20y": 11, "h2h_all": 15,
        }
        assert report.total_historical_games == 15

    def test_recommends_highest_confidence(self, spread_store):
        report = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF)
        assert report.recommended_segment == "h2h_all"
        assert report.data_quality == "good"
        recommended = [r.segment_key for r in report.rows if r.is_recommended]
        assert recommended == ["h2h_all"]

    def test_games_by_year(self, spread_store):
        report = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF)
        assert _rows(report)["h2h_all"].games_by_year == {1995: 4, 2012: 6, 2023: 3, 2025: 2}

    def test_stats_and_range(self, spread_store):
        row = _rows(build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF))["h2h_1y"]
        assert row.p05 == 220
        assert row.p95 == 224
        assert row.range == 4
        assert row.confidence_label != "Insufficient"

    def test_empty_segment_row(self, store):
        report = build_segment_report(store, "nba", HOME, AWAY, as_of=AS_OF)
        row = _rows(report)["h2h_1y"]
        assert row.n_games == 0
        assert row.p05 is None
        assert row.range is None
        assert row.confidence == 0
        assert report.recommended_segment == "insufficient"
        assert report.data_quality == "insufficient"

    def test_recent_segment_with_ten_games_wins(self, store, key, make_obs):
        store.add_h2h(key, make_obs(range(210, 220), 2025))
        report = build_segment_report(store, "nba", HOME, AWAY, as_of=AS_OF)
        assert report.recommended_segment == "h2h_1y"
        assert "most relevant" in report.recommendation_reason

    def test_decades_shown_but_never_recommended(self, spread_store):
        report = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF, include_decades=True)
        rows = _rows(report)
        assert len(report.rows) == 10
        assert rows["decade_2010s"].n_games == 6
        assert rows["decade_1990s"].n_games == 4
        assert not any(r.is_recommended for k, r in rows.items() if k.startswith("decade_"))

    def test_single_store_read(self, spread_store):
        build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF, include_decades=True)
        assert spread_store.calls.count("fetch_observations") == 1

    def test_continuity_feeds_confidence(self, spread_store):
        low = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF,
                                   home_continuity=0.0, away_continuity=0.0)
        high = build_segment_report(spread_store, "nba", HOME, AWAY, as_of=AS_OF,
                                    home_continuity=100.0, away_continuity=100.0)
        assert _rows(high)["h2h_all"].confidence > _rows(low)["h2h_all"].confidence


class TestRecommendSegment:

    def test_tie_broken_by_recency_weight(self):
        rows = [
            SegmentReportRow("h2h_10y", "Last 10 Years", 6, 0.5, confidence=55),
            SegmentReportRow("h2h_5y", "Last 5 Years", 5, 0.7, confidence=55),
        ]
        key, reason = recommend_segment(rows)
        assert key == "h2h_5y"
        assert "best balance" in reason

    def test_below_minimum_ineligible(self):
        rows = [SegmentReportRow("h2h_1y", "Last 1 Year", 2, 1.0, confidence=70)]
        assert recommend_segment(rows)[0] == "insufficient"
