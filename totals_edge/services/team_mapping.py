"""
Team lookup: ESPN abbreviations, internal abbreviations and display names
all resolve to one :class:`~totals_edge.core.interfaces.TeamRef`.

ESPN's scoreboard feed uses a handful of abbreviations that differ from
ours (``GS`` vs ``GSW``, ``UTAH`` vs ``UTA`` ...).  ``ESPN_TO_INTERNAL`` is
the single source of truth for those; everything else is already aligned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process, utils
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import TeamRef

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ESPN -> internal abbreviations, per sport.  Only mismatches are listed.
# ---------------------------------------------------------------------------
ESPN_TO_INTERNAL: Dict[str, Dict[str, str]] = {
    "nba": {"GS": "GSW", "NY": "NYK", "NO": "NOP", "SA": "SAS", "UTAH": "UTA", "WSH": "WAS", "PHO": "PHX"},
    "nfl": {"JAX": "JAC", "WSH": "WAS"},
    "nhl": {"LA": "LAK", "UTAH": "UTA", "WSH": "WAS", "VGK": "VEG", "NAS": "NSH"},
    "mlb": {"CHW": "CWS", "WSH": "WAS"},
}

INTERNAL_TO_ESPN: Dict[str, Dict[str, str]] = {
    sport: {internal: espn for espn, internal in mapping.items()}
    for sport, mapping in ESPN_TO_INTERNAL.items()
}

# Threshold matches the odds-name normaliser: high enough to keep cities
# with two franchises ("Los Angeles ...") apart.
FUZZY_SCORE_CUTOFF = 85


def normalize_abbrev(sport_id: str, abbrev: str) -> str:
    """ESPN (or already internal) abbreviation -> internal abbreviation."""
    code = abbrev.strip().upper()
    return ESPN_TO_INTERNAL.get(sport_id.lower(), {}).get(code, code)


def to_espn_abbrev(sport_id: str, abbrev: str) -> str:
    """Internal abbreviation -> the form ESPN's feed expects."""
    code = abbrev.strip().upper()
    return INTERNAL_TO_ESPN.get(sport_id.lower(), {}).get(code, code)


@dataclass(frozen=True)
class TeamEntry:
    team_id: str
    sport_id: str
    abbrev: str
    name: str
    franchise_id: Optional[str] = None

    def to_ref(self) -> TeamRef:
        return TeamRef(team_id=self.team_id, franchise_id=self.franchise_id)


class TeamDirectory:
    """
    Memoising lookup of team references for every sport.

    The directory is an explicit object: build one per process (or per
    request in tests) and pass it to whoever needs it.  Resolution order
    for a query within one sport:

        1. abbreviation (after ESPN normalisation)
        2. exact display name, case-insensitive
        3. rapidfuzz ``token_set_ratio`` against display names
    """

    def __init__(self, entries: Iterable[TeamEntry] = ()):
        self._by_abbrev: Dict[Tuple[str, str], TeamEntry] = {}
        self._by_name: Dict[Tuple[str, str], TeamEntry] = {}
        self._names: Dict[str, List[str]] = {}
        self._resolved: Dict[Tuple[str, str], Optional[TeamRef]] = {}
        for entry in entries:
            self.add(entry)

    @classmethod
    def from_db(cls, db: Session) -> TeamDirectory:
        from totals_edge.models import Team

        try:
            rows = db.query(Team).all()
        except SQLAlchemyError as exc:
            logger.error("Loading teams failed: %s", exc)
            raise CollaboratorError(f"teams query failed: {exc}", collaborator="team_directory") from exc

        directory = cls(
            TeamEntry(
                team_id=t.id,
                sport_id=t.sport_id,
                abbrev=t.abbrev,
                name=t.name,
                franchise_id=t.franchise_id,
            )
            for t in rows
        )
        logger.info("Team directory loaded: %d teams", len(rows))
        return directory

    def add(self, entry: TeamEntry) -> None:
        sport = entry.sport_id.lower()
        self._by_abbrev[(sport, entry.abbrev.upper())] = entry
        self._by_name[(sport, entry.name.lower())] = entry
        self._names.setdefault(sport, []).append(entry.name)
        self._resolved.clear()

    def __len__(self) -> int:
        return len(self._by_abbrev)

    def resolve(self, sport_id: str, query: str) -> Optional[TeamRef]:
        """TeamRef for an abbreviation or display name, or None."""
        sport = sport_id.lower()
        cache_key = (sport, query.strip().lower())
        if cache_key in self._resolved:
            return self._resolved[cache_key]

        entry = self._lookup(sport, query.strip())
        ref = entry.to_ref() if entry is not None else None
        self._resolved[cache_key] = ref
        return ref

    def _lookup(self, sport: str, query: str) -> Optional[TeamEntry]:
        if not query:
            return None

        entry = self._by_abbrev.get((sport, normalize_abbrev(sport, query)))
        if entry is not None:
            return entry

        entry = self._by_name.get((sport, query.lower()))
        if entry is not None:
            return entry

        choices = self._names.get(sport, [])
        if not choices:
            return None
        result = process.extractOne(query, choices, scorer=fuzz.token_set_ratio,
                                    processor=utils.default_process, score_cutoff=FUZZY_SCORE_CUTOFF)
        if result is None:
            logger.debug("No team match for %r in %s", query, sport)
            return None

        logger.debug("Fuzzy matched %r to %r (score %.0f)", query, result[0], result[1])
        return self._by_name[(sport, result[0].lower())]
