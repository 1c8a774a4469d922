"""
Bracket creation and score entry.

``create_bracket`` picks the builder for the requested format; ``record_result``
is the only way results get into a bracket. The engine changes the graph it is
given in place, so callers that need an untouched copy call ``clone_bracket``
first.
"""
import logging
from typing import Dict, List, Optional

from .double_elimination import build_double_elimination
from .elimination import build_single_elimination
from .errors import InvalidInputError
from .models import (
    BracketGraph,
    DOUBLE_ELIMINATION,
    FORMATS,
    PARTICIPANT_KINDS,
    Participant,
    ROUND_ROBIN,
    SINGLE_ELIMINATION,
    UNSET,
    node_state,
    RESOLVED,
)
from .propagation import check_integrity, find_node, record_result
from .round_robin import build_round_robin
from .shuffle import shuffle

logger = logging.getLogger(__name__)

BUILDERS = {
    SINGLE_ELIMINATION: build_single_elimination,
    DOUBLE_ELIMINATION: build_double_elimination,
    ROUND_ROBIN: build_round_robin,
}

__all__ = [
    'BUILDERS',
    'bracket_summary',
    'clone_bracket',
    'create_bracket',
    'find_node',
    'is_complete',
    'list_playable_nodes',
    'list_resolved_nodes',
    'list_unresolved_nodes',
    'record_result',
]


def _coerce_participants(participants) -> List[Participant]:
    if participants is None:
        return []
    if not isinstance(participants, (list, tuple)):
        raise InvalidInputError(f"Participants must be a list, got {type(participants).__name__}")
    result = []
    for p in participants:
        if isinstance(p, Participant):
            result.append(p)
        elif isinstance(p, dict):
            if not p.get('id') or not p.get('name'):
                raise InvalidInputError("Each participant needs an id and a name")
            result.append(Participant.from_dict(p))
        else:
            raise InvalidInputError(f"Unsupported participant {p!r}")
    return result


def create_bracket(name: str, participants, format: str, participant_kind: str = 'team',
                   pits: int = 1, shuffler=shuffle, league_id: Optional[str] = None) -> BracketGraph:
    """
    Build a new bracket.

    Args:
        name: Display name of the tournament
        participants: ``Participant`` objects or dicts with id, name, avatarRef
        format: One of single-elimination, double-elimination, round-robin
        participant_kind: 'team' or 'player'
        pits: Number of matches that can run at once (display only)
        shuffler: Callable returning a reordered copy of the participants
        league_id: Optional owning league

    Raises:
        InvalidInputError: fewer than 2 participants, duplicate ids, or an
            unknown format, participant kind or pit count.
    """
    if format not in BUILDERS:
        raise InvalidInputError(f"Unknown bracket format {format!r}; expected one of {', '.join(FORMATS)}")
    if participant_kind not in PARTICIPANT_KINDS:
        raise InvalidInputError(f"Unknown participant kind {participant_kind!r}")
    if isinstance(pits, bool) or not isinstance(pits, int) or pits < 1:
        raise InvalidInputError(f"Pits must be a positive integer, got {pits!r}")

    participants = _coerce_participants(participants)
    if len(participants) < 2:
        raise InvalidInputError("A bracket needs at least 2 participants")
    ids = [p.id for p in participants]
    if len(set(ids)) != len(ids):
        raise InvalidInputError("Participant ids must be unique")

    graph = BUILDERS[format](name, participants, participant_kind, pits, shuffler, league_id)
    check_integrity(graph)

    logger.info("Created %s bracket '%s' (%s) with %d participants",
                format, name, graph.id, len(participants))
    return graph


def list_resolved_nodes(graph: BracketGraph) -> List:
    """Matches with a winner, in reading order."""
    return [n for n in graph.all_nodes() if node_state(n) == RESOLVED]


def list_unresolved_nodes(graph: BracketGraph) -> List:
    """Matches without a winner (unplayed, partly scored or tied), in reading order."""
    return [n for n in graph.all_nodes() if node_state(n) != RESOLVED]


def _game_order(node):
    number = getattr(node, 'game_number', UNSET)
    return number if isinstance(number, int) else 999


def list_playable_nodes(graph: BracketGraph) -> List:
    """
    Unresolved matches whose two participants are both known.

    Ordered by game number, unnumbered matches last. This is the queue the
    live scoring screen fills its pits from.
    """
    playable = [
        n for n in list_unresolved_nodes(graph)
        if not n.slot_a.is_empty and not n.slot_b.is_empty
    ]
    return sorted(playable, key=_game_order)


def is_complete(graph: BracketGraph) -> bool:
    """True once no match is left that could still be played."""
    return not list_playable_nodes(graph)


def clone_bracket(graph: BracketGraph) -> BracketGraph:
    return BracketGraph.from_dict(graph.to_dict())


def bracket_summary(graph: BracketGraph) -> Dict:
    return {
        'id': graph.id,
        'name': graph.name,
        'format': graph.format,
        'leagueId': graph.league_id,
        'participants': len(graph.participants),
        'resolved': len(list_resolved_nodes(graph)),
        'total': len(graph.all_nodes()),
    }
