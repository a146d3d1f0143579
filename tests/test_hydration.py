"""
Tests for the HTTP hydration client (requests mocked)
Run with: pytest tests/test_hydration.py -v
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from totals_edge.core.errors import HydrationError
from totals_edge.core.interfaces import HydrationResult, MatchupKey, TeamRef
from totals_edge.services import hydration
from totals_edge.services.hydration import HttpHydrator, hydrator_from_env

URL = "https://hydrate.example.test/functions/v1/hydrate-matchup"
KEY = MatchupKey.from_teams("nba", TeamRef("LAL"), TeamRef("BOS"))


def _response(payload=None, status_error=None, json_error=None):
    resp = MagicMock()
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


@patch("totals_edge.services.hydration.requests.post")
def test_success(mock_post):
    mock_post.return_value = _response({"success": True, "inserted": 7, "n_games_total": 31})

    result = HttpHydrator(URL, api_key="secret").trigger_hydration(KEY, years_back=10, timeout=4.0)

    assert result == HydrationResult(inserted_count=7, total_count=31)
    args, kwargs = mock_post.call_args
    assert args[0] == URL
    assert kwargs["timeout"] == 4.0
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"] == {
        "sport_id": "nba",
        "team_a_id": "BOS",
        "team_b_id": "LAL",
        "keyed_by": "team",
        "years_back": 10,
        "league_path": "basketball/nba",
    }


@patch("totals_edge.services.hydration.requests.post")
def test_missing_counts_default_to_zero(mock_post):
    mock_post.return_value = _response({"success": True})
    assert HttpHydrator(URL).trigger_hydration(KEY, 10, 1.0) == HydrationResult(0, 0)


@patch("totals_edge.services.hydration.requests.post")
def test_no_auth_header_without_key(mock_post, monkeypatch):
    monkeypatch.setattr(hydration, "HYDRATION_API_KEY", None)
    mock_post.return_value = _response({"inserted": 1, "n_games_total": 1})
    HttpHydrator(URL).trigger_hydration(KEY, 10, 1.0)
    assert "Authorization" not in mock_post.call_args.kwargs["headers"]


@pytest.mark.parametrize("response_kwargs", [
    {"status_error": requests.exceptions.HTTPError("500 Server Error")},
    {"json_error": ValueError("Expecting value")},
    {"payload": ["not", "a", "dict"]},
    {"payload": {"inserted": "many"}},
])
@patch("totals_edge.services.hydration.requests.post")
def test_bad_responses_raise_hydration_error(mock_post, response_kwargs):
    mock_post.return_value = _response(**response_kwargs)
    with pytest.raises(HydrationError) as exc_info:
        HttpHydrator(URL).trigger_hydration(KEY, 10, 1.0)
    assert exc_info.value.collaborator == "hydration"


@patch("totals_edge.services.hydration.requests.post")
def test_network_error(mock_post):
    mock_post.side_effect = requests.exceptions.ConnectTimeout("timed out")
    with pytest.raises(HydrationError):
        HttpHydrator(URL).trigger_hydration(KEY, 10, 1.0)


def test_url_required(monkeypatch):
    monkeypatch.setattr(hydration, "HYDRATION_URL", None)
    with pytest.raises(ValueError):
        HttpHydrator()


def test_from_env(monkeypatch):
    monkeypatch.setattr(hydration, "HYDRATION_URL", None)
    assert hydrator_from_env() is None

    monkeypatch.setattr(hydration, "HYDRATION_URL", URL)
    assert hydrator_from_env().url == URL
