"""
HTTP client for the matchup hydration service.

The hydration service pages the upstream scoreboard feed for one matchup,
inserts any head-to-head games the store is missing and answers with the
counts::

    POST {HYDRATION_URL}
    {"sport_id": "nba", "team_a_id": "...", "team_b_id": "...",
     "keyed_by": "team", "years_back": 10, "league_path": "basketball/nba"}

    200 {"inserted": 7, "n_games_total": 31, ...}

Every failure (network, non-2xx, malformed body) surfaces as
``HydrationError``; the engine treats that exactly like a timeout.
"""

import logging
import os
from typing import Dict, Optional

import requests
from dotenv import load_dotenv

from totals_edge.core.errors import HydrationError
from totals_edge.core.interfaces import HydrationResult, Hydrator, MatchupKey
from totals_edge.core.sport_config import SportConfig

load_dotenv()

logger = logging.getLogger(__name__)

HYDRATION_URL = os.getenv("HYDRATION_URL")
HYDRATION_API_KEY = os.getenv("HYDRATION_API_KEY")


class HttpHydrator(Hydrator):
    """Client for the hydration endpoint"""

    def __init__(self, url: Optional[str] = None, api_key: Optional[str] = None):
        self.url = url or HYDRATION_URL
        self.api_key = api_key or HYDRATION_API_KEY
        if not self.url:
            raise ValueError("HYDRATION_URL not set in environment")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def trigger_hydration(self, key: MatchupKey, years_back: int, timeout: float) -> HydrationResult:
        payload = {
            "sport_id": key.sport_id,
            "team_a_id": key.entity_low_id,
            "team_b_id": key.entity_high_id,
            "keyed_by": key.keyed_by,
            "years_back": years_back,
            "league_path": SportConfig.for_sport(key.sport_id).espn_path,
        }

        try:
            response = requests.post(self.url, json=payload, headers=self._headers(), timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Hydration request for %s failed: %s", key, e)
            raise HydrationError(f"hydration request failed: {e}") from e
        except ValueError as e:
            logger.error("Hydration response for %s is not JSON: %s", key, e)
            raise HydrationError("hydration response is not JSON") from e

        try:
            inserted = int(data.get("inserted", 0))
            total = int(data.get("n_games_total", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise HydrationError(f"malformed hydration response: {data!r}") from e

        logger.info("Hydration %s: %d inserted, %d total", key, inserted, total)
        return HydrationResult(inserted_count=inserted, total_count=total)


def hydrator_from_env() -> Optional[HttpHydrator]:
    """Configured hydrator, or None when ``HYDRATION_URL`` is unset."""
    if not HYDRATION_URL:
        logger.info("HYDRATION_URL not set; hydration disabled")
        return None
    return HttpHydrator()
