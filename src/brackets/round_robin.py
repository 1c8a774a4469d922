"""
Round-robin schedule generation and standings.
"""
import logging
from typing import Dict, List, Optional, Tuple

from .models import (
    BracketGraph,
    MatchSlot,
    Participant,
    ROUND_ROBIN,
    RoundRobinMatch,
    new_bracket_id,
)

logger = logging.getLogger(__name__)


def schedule_rounds(participants: List[Participant]) -> List[List[Tuple[Participant, Participant]]]:
    """
    Pair participants with the circle method.

    The first participant stays fixed while the rest rotate one place per
    round. With an odd count a bye placeholder is added; whoever meets it sits
    the round out.
    """
    working = list(participants)
    if len(working) % 2 != 0:
        working.append(None)

    total = len(working)
    half = total // 2
    fixed = working[0]
    rotating = working[1:]

    rounds = []
    for _ in range(total - 1):
        current = [fixed] + rotating
        pairs = []
        for i in range(half):
            participant_a = current[i]
            participant_b = current[total - 1 - i]
            if participant_a is None or participant_b is None:
                continue
            pairs.append((participant_a, participant_b))
        rounds.append(pairs)
        rotating.insert(0, rotating.pop())

    return rounds


def build_round_robin(name: str, participants: List[Participant], participant_kind: str = 'team',
                      pits: int = 1, shuffler=None, league_id: Optional[str] = None) -> BracketGraph:
    """Build a round-robin where everyone plays everyone else exactly once."""
    working = list(shuffler(participants)) if shuffler else list(participants)

    matches = []
    for pairs in schedule_rounds(working):
        for participant_a, participant_b in pairs:
            matches.append(RoundRobinMatch(
                f"rr-match-{participant_a.id}-{participant_b.id}",
                MatchSlot.for_participant(participant_a),
                MatchSlot.for_participant(participant_b),
            ))

    logger.debug("Built round-robin '%s': %d participants, %d matches", name, len(participants), len(matches))

    return BracketGraph(
        id=new_bracket_id(),
        name=name,
        format=ROUND_ROBIN,
        participant_kind=participant_kind,
        participants=list(participants),
        matches=matches,
        pits=pits,
        league_id=league_id,
    )


def calculate_standings(graph: BracketGraph) -> List[Dict]:
    """
    Win/loss table for a round-robin.

    A tied match counts as played and as a tie for both sides. Rows are sorted
    by wins (most first), then losses (fewest first).
    """
    stats = {}
    for p in graph.participants:
        stats[p.id] = {
            'participant_id': p.id,
            'name': p.name,
            'wins': 0,
            'losses': 0,
            'ties': 0,
            'games_played': 0,
            'points_for': 0,
            'points_against': 0,
        }

    for match in graph.matches or []:
        score_a, score_b = match.slot_a.score, match.slot_b.score
        if score_a is None or score_b is None:
            continue

        row_a = stats[match.slot_a.participant_id]
        row_b = stats[match.slot_b.participant_id]
        for row, scored, conceded in ((row_a, score_a, score_b), (row_b, score_b, score_a)):
            row['games_played'] += 1
            row['points_for'] += scored
            row['points_against'] += conceded

        if match.winner_id == match.slot_a.participant_id:
            row_a['wins'] += 1
            row_b['losses'] += 1
        elif match.winner_id == match.slot_b.participant_id:
            row_b['wins'] += 1
            row_a['losses'] += 1
        else:
            row_a['ties'] += 1
            row_b['ties'] += 1

    return sorted(stats.values(), key=lambda row: (-row['wins'], row['losses']))
