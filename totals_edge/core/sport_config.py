"""Sport-level configuration - all sport-specific constants in one place.

This module is the **registry** for every constant that differs between
sports.  Nowhere else in the codebase should key roster positions or
sport identifiers be hard-coded.

Architecture
------------
:class:`SportConfig` is a frozen dataclass carrying all per-sport constants.
Named constructors (:meth:`SportConfig.nba`, :meth:`SportConfig.nfl`, ...)
return pre-populated instances and :meth:`SportConfig.for_sport` resolves a
sport id string.  To add a new sport:

1. Add a ``SPORT_ID_*`` constant and a ``@classmethod`` constructor here.
2. Register the constructor in ``_CONSTRUCTORS``.

Typical usage::

    from totals_edge.core.sport_config import SportConfig

    cfg = SportConfig.for_sport("nhl")
    cfg.key_positions   # ("C", "G", "D")

    # Override a single constant:
    from dataclasses import replace
    custom_cfg = replace(cfg, key_player_count=6)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Final, Tuple

#: Sport identifier strings used in API routes and DB records.
SPORT_ID_NBA: Final[str] = "nba"
SPORT_ID_NFL: Final[str] = "nfl"
SPORT_ID_NHL: Final[str] = "nhl"
SPORT_ID_MLB: Final[str] = "mlb"


@dataclass(frozen=True)
class SportConfig:
    """Immutable configuration bundle for a single sport.

    Attributes:
        sport_id: Short identifier string (``"nba"``, ``"nhl"``, ...) used in
            API routes and DB records.
        sport_name: Human-readable name for logging and display.
        key_positions: Roster positions whose players define a team's core.
            Continuity is measured on the key-player set, so these positions
            decide which departures matter.  Abbreviations follow ESPN's
            roster feed.
        key_player_count: Size of the key-player set per season.  Teams with
            fewer key-position players are padded with their most
            experienced remaining players.
        espn_path: ``<sport>/<league>`` segment of ESPN site-API URLs, passed
            to the hydration service so it knows which feed to page.
    """

    sport_id: str
    sport_name: str
    key_positions: Tuple[str, ...]
    key_player_count: int = 5
    espn_path: str = ""

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def nba(cls) -> SportConfig:
        """NBA: the primary ball-handler, wing and big define the core."""
        return cls(
            sport_id=SPORT_ID_NBA,
            sport_name="NBA",
            key_positions=("PG", "SF", "C"),
            espn_path="basketball/nba",
        )

    @classmethod
    def nfl(cls) -> SportConfig:
        """NFL: quarterback and skill positions plus the pass rush / coverage."""
        return cls(
            sport_id=SPORT_ID_NFL,
            sport_name="NFL",
            key_positions=("QB", "WR", "RB", "DE", "CB"),
            espn_path="football/nfl",
        )

    @classmethod
    def nhl(cls) -> SportConfig:
        return cls(
            sport_id=SPORT_ID_NHL,
            sport_name="NHL",
            key_positions=("C", "G", "D"),
            espn_path="hockey/nhl",
        )

    @classmethod
    def mlb(cls) -> SportConfig:
        return cls(
            sport_id=SPORT_ID_MLB,
            sport_name="MLB",
            key_positions=("P", "C", "SS", "CF"),
            espn_path="baseball/mlb",
        )

    @classmethod
    def for_sport(cls, sport_id: str) -> SportConfig:
        """Resolve a sport id to its configuration.

        Unknown sports get a config with no key positions, so key-player
        selection falls back to pure experience ranking.
        """
        constructor = _CONSTRUCTORS.get(sport_id.lower())
        if constructor is None:
            return cls(sport_id=sport_id, sport_name=sport_id.upper(), key_positions=())
        return constructor()

    def __repr__(self) -> str:
        return (
            f"SportConfig(sport_id={self.sport_id!r}, "
            f"key_positions={self.key_positions}, "
            f"key_player_count={self.key_player_count})"
        )


_CONSTRUCTORS: Dict[str, Callable[[], SportConfig]] = {
    SPORT_ID_NBA: SportConfig.nba,
    SPORT_ID_NFL: SportConfig.nfl,
    SPORT_ID_NHL: SportConfig.nhl,
    SPORT_ID_MLB: SportConfig.mlb,
}
