"""
Single elimination bracket generation.
"""
import logging
import math
from typing import List, Optional

from .models import (
    BracketGraph,
    BracketNode,
    MatchSlot,
    Participant,
    SINGLE_ELIMINATION,
    new_bracket_id,
)
from .shuffle import shuffle

logger = logging.getLogger(__name__)


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_bracket_size(num_participants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_participants <= 0:
        return 0
    return 2 ** calculate_rounds(num_participants)


def calculate_rounds(num_participants: int) -> int:
    """Number of rounds needed to reduce the field to one winner."""
    if num_participants <= 1:
        return 0
    return math.ceil(math.log2(num_participants))


def calculate_byes(num_participants: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_participants) - num_participants


def round_titles(total_rounds: int) -> List[str]:
    """Display names for each round of a bracket with ``total_rounds`` rounds."""
    return [get_round_name(2 ** (total_rounds - i)) for i in range(total_rounds)]


def build_single_elimination(name: str, participants: List[Participant], participant_kind: str = 'team',
                             pits: int = 1, shuffler=shuffle, league_id: Optional[str] = None) -> BracketGraph:
    """
    Build a single elimination bracket.

    The first ``byes`` shuffled participants skip round 1 and are placed
    straight into round 2. The rest are paired in shuffled order. Every later
    round is created empty and filled as results come in. Games are
    numbered 1.. in reading order.
    """
    total_rounds = calculate_rounds(len(participants))
    num_byes = calculate_byes(len(participants))

    seeded = list(shuffler(participants))
    byes = seeded[:num_byes]
    playing = seeded[num_byes:]

    rounds = []

    first_round = []
    for i in range(0, len(playing), 2):
        match_id = f"R1-M{len(first_round) + 1}"
        first_round.append(BracketNode(
            match_id,
            MatchSlot.for_participant(playing[i]),
            MatchSlot.for_participant(playing[i + 1]),
        ))
    rounds.append(first_round)

    for round_num in range(1, total_rounds):
        feeders = len(rounds[-1]) + (len(byes) if round_num == 1 else 0)
        rounds.append([BracketNode(f"R{round_num + 1}-M{j + 1}") for j in range(feeders // 2)])

    _link_rounds(rounds, byes)

    game_number = 1
    for round_nodes in rounds:
        for node in round_nodes:
            node.game_number = game_number
            game_number += 1

    logger.debug("Built single elimination bracket '%s': %d participants, %d rounds, %d byes",
                 name, len(participants), total_rounds, num_byes)

    return BracketGraph(
        id=new_bracket_id(),
        name=name,
        format=SINGLE_ELIMINATION,
        participant_kind=participant_kind,
        participants=seeded,
        winner_rounds=rounds,
        pits=pits,
        league_id=league_id,
    )


def _link_rounds(rounds: List[List[BracketNode]], byes: List[Participant]) -> None:
    """
    Point every node at the node its winner plays next.

    Round 1 feeders are the round 1 nodes followed by one virtual feeder per
    bye. Feeder ``j`` goes to node ``j // 2`` of the next round, slot A when
    ``j`` is even. Byes are written into their slot right away.
    """
    for round_idx in range(len(rounds) - 1):
        next_round = rounds[round_idx + 1]
        feeders = list(rounds[round_idx])
        if round_idx == 0:
            feeders.extend(byes)

        for j, feeder in enumerate(feeders):
            target = next_round[j // 2]
            if isinstance(feeder, BracketNode):
                feeder.next_match_id = target.id
            elif j % 2 == 0:
                target.slot_a = MatchSlot.for_participant(feeder)
            else:
                target.slot_b = MatchSlot.for_participant(feeder)


def champion(graph: BracketGraph) -> Optional[Participant]:
    """Winner of the bracket's last match, or None while it is undecided."""
    if not graph.winner_rounds or not graph.winner_rounds[-1]:
        return None
    final = graph.winner_rounds[-1][0]
    if final.winner_id is None:
        return None
    return graph.participant(final.winner_id)
