"""Dependency-injection interfaces for the engine's external collaborators.

The engine never talks to a database or the network directly.  It is
handed a :class:`HistoricalGameStore` (read-only historical totals and
roster snapshots) and, optionally, a :class:`Hydrator` (fetches more
history on demand).  This enables:

* **Unit testing** - inject an in-memory store that returns fixed
  observations without touching SQL.
* **Deployment choice** - :class:`~totals_edge.services.game_store.SqlGameStore`
  in production, a fake in tests, a cached wrapper behind an API.

Design choices
--------------
* The collaborators are abstract base classes rather than
  ``typing.Protocol`` so that adapter authors inherit the contract
  explicitly and ``isinstance`` guards work at runtime.
* DTOs are frozen so results can be shared across threads; concurrent
  matchup computations never share mutable state.
* Adapters must raise :class:`~totals_edge.core.errors.CollaboratorError`
  (or a subclass) for infrastructure failures, never driver exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from totals_edge.core.segments import DecadeSegment

KEYED_BY_FRANCHISE = "franchise"
KEYED_BY_TEAM = "team"


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TeamRef:
    """One side of a matchup.

    Attributes:
        team_id: Current team id (changes on relocation/rename).
        franchise_id: Stable franchise id, when the team has been mapped to
            one.  Preferred for history lookups.
    """

    team_id: str
    franchise_id: Optional[str] = None


@dataclass(frozen=True)
class MatchupKey:
    """Canonical, order-independent address of a head-to-head history.

    Exactly one addressing mode is used per key: franchise ids when both
    teams carry one, otherwise team ids.  The pair is sorted, so
    ``(A, B)`` and ``(B, A)`` produce equal keys.
    """

    sport_id: str
    entity_low_id: str
    entity_high_id: str
    keyed_by: str = KEYED_BY_TEAM

    @classmethod
    def from_teams(cls, sport_id: str, home: TeamRef, away: TeamRef) -> MatchupKey:
        if home.franchise_id and away.franchise_id:
            low, high = sorted((home.franchise_id, away.franchise_id))
            return cls(sport_id, low, high, KEYED_BY_FRANCHISE)
        low, high = sorted((home.team_id, away.team_id))
        return cls(sport_id, low, high, KEYED_BY_TEAM)

    @property
    def uses_franchise(self) -> bool:
        return self.keyed_by == KEYED_BY_FRANCHISE

    def __str__(self) -> str:
        return f"{self.sport_id}:{self.keyed_by}:{self.entity_low_id}-{self.entity_high_id}"


@dataclass(frozen=True)
class HistoricalObservation:
    """One previously played game's combined score."""

    total: float
    played_at: datetime
    season_year: int


@dataclass(frozen=True)
class RosterPlayer:
    id: str
    name: str = ""
    position: str = "N/A"
    experience: int = 0


@dataclass(frozen=True)
class RosterSnapshot:
    """A team's key roster for one season.

    Attributes:
        continuity_score: 0-100 share of this season's key players who were
            key players the season before.  ``None`` when there is no prior
            snapshot to compare against.
        era_tag: ``stable`` / ``transition`` / ``retooling`` / ``rebuild``.
        era_start_year: First season of the current era.
        notes: Human-readable era description.
    """

    team_id: str
    sport_id: str
    season_year: int
    continuity_score: Optional[float] = None
    key_players: Tuple[RosterPlayer, ...] = field(default_factory=tuple)
    era_tag: Optional[str] = None
    era_start_year: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SegmentStats:
    """Percentile statistics for one historical segment."""

    segment_key: str
    n_games: int
    p05: float
    p95: float
    median: float
    min: float
    max: float


@dataclass(frozen=True)
class HydrationResult:
    inserted_count: int
    total_count: int


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class HistoricalGameStore(ABC):
    """Read-only access to historical totals and roster snapshots."""

    @abstractmethod
    def fetch_observations(
        self,
        key: MatchupKey,
        since_season: Optional[int] = None,
        decade: Optional[DecadeSegment] = None,
    ) -> List[HistoricalObservation]:
        """Head-to-head observations for ``key``.

        Args:
            key: Canonical matchup key.
            since_season: If set, only games with ``season_year >=
                since_season``.
            decade: If set, only games played inside the decade's
                ``[start, end)`` range.  Mutually exclusive with
                ``since_season``.
        """

    @abstractmethod
    def fetch_team_recent_games(self, team_id: str, limit: int) -> List[float]:
        """Totals of the team's ``limit`` most recent completed games, any opponent."""

    @abstractmethod
    def fetch_roster_snapshots(self, team_id: str, sport_id: str) -> List[RosterSnapshot]:
        """All roster snapshots for the team, newest season first."""


class Hydrator(ABC):
    """Fetches missing head-to-head history from an upstream source."""

    @abstractmethod
    def trigger_hydration(
        self,
        key: MatchupKey,
        years_back: int,
        timeout: float,
    ) -> HydrationResult:
        """Insert any missing games for ``key`` and report the counts.

        Raises:
            HydrationError: On network failure, upstream error or timeout.
        """
