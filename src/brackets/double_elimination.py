"""
Double elimination bracket generation.

In double elimination:
- Participants must lose twice to be eliminated
- Winners Bracket: participants that haven't lost yet
- Losers Bracket: participants that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion

Exactly 8 participants get a fixed 12-game playoff layout instead of the
generic construction. Fewer than 3 participants collapse to a single match.
"""
import logging
import math
from typing import List, Optional

from .elimination import build_single_elimination
from .models import (
    BracketGraph,
    BracketNode,
    DOUBLE_ELIMINATION,
    MatchSlot,
    Participant,
    new_bracket_id,
)
from .shuffle import shuffle

logger = logging.getLogger(__name__)

PLAYOFF_SIZE = 8
GRAND_FINAL_ID = 'Grand-Final'
GRAND_FINAL_LABEL = 'Grand Final'

# game -> (next game for the winner, next game for the loser, label)
PLAYOFF_LAYOUT = {
    1: ('G7', 'G5', 'R1-M1'),
    2: ('G7', 'G5', 'R1-M2'),
    3: ('G8', 'G6', 'R1-M3'),
    4: ('G8', 'G6', 'R1-M4'),
    5: ('G11', 'G9', 'Consolation Semifinal 1'),
    6: ('G11', 'G9', 'Consolation Semifinal 2'),
    7: ('G12', 'G10', "Winner's Semifinal 1"),
    8: ('G12', 'G10', "Winner's Semifinal 2"),
    9: (None, None, '7th Place Game'),
    10: (None, None, '3rd Place Game'),
    11: (None, None, 'Consolation Final'),
    12: (None, None, 'Championship'),
}
PLAYOFF_WINNER_ROUNDS = [[1, 2, 3, 4], [7, 8], [12]]
PLAYOFF_LOSER_ROUNDS = [[5, 6], [11], [9, 10]]


def build_double_elimination(name: str, participants: List[Participant], participant_kind: str = 'team',
                             pits: int = 1, shuffler=shuffle, league_id: Optional[str] = None) -> BracketGraph:
    """Build a double elimination bracket, picking the layout by participant count."""
    if len(participants) == PLAYOFF_SIZE:
        return _build_playoff_bracket(name, participants, participant_kind, pits, shuffler, league_id)

    if len(participants) < 3:
        graph = build_single_elimination(name, participants, participant_kind, pits, shuffler, league_id)
        graph.format = DOUBLE_ELIMINATION
        graph.winner_rounds[-1][0].match_label = GRAND_FINAL_LABEL
        graph.loser_rounds = []
        return graph

    return _build_generic_bracket(name, participants, participant_kind, pits, shuffler, league_id)


def _build_playoff_bracket(name, participants, participant_kind, pits, shuffler, league_id) -> BracketGraph:
    """
    Fixed 8-participant playoff.

    G1-G4 open the winners bracket. Their losers meet in G5/G6 and their
    winners in G7/G8. G11 and G9 settle the consolation side, G12 and G10 the
    championship side.
    """
    seeded = list(shuffler(participants))

    nodes = {}
    for game, (next_game, loser_game, label) in PLAYOFF_LAYOUT.items():
        nodes[game] = BracketNode(
            f"G{game}",
            match_label=label,
            next_match_id=next_game,
            loser_destination_match_id=loser_game,
            game_number=game,
        )

    for i, game in enumerate(PLAYOFF_WINNER_ROUNDS[0]):
        nodes[game].slot_a = MatchSlot.for_participant(seeded[2 * i])
        nodes[game].slot_b = MatchSlot.for_participant(seeded[2 * i + 1])

    logger.debug("Built 8-participant playoff bracket '%s'", name)

    return BracketGraph(
        id=new_bracket_id(),
        name=name,
        format=DOUBLE_ELIMINATION,
        participant_kind=participant_kind,
        participants=seeded,
        winner_rounds=[[nodes[g] for g in r] for r in PLAYOFF_WINNER_ROUNDS],
        loser_rounds=[[nodes[g] for g in r] for r in PLAYOFF_LOSER_ROUNDS],
        pits=pits,
        league_id=league_id,
    )


def _build_generic_bracket(name, participants, participant_kind, pits, shuffler, league_id) -> BracketGraph:
    graph = build_single_elimination(name, participants, participant_kind, pits, shuffler, league_id)
    winner_rounds = graph.winner_rounds

    game_counter = sum(len(r) for r in winner_rounds) + 1
    loser_rounds, game_counter = _generate_losers_bracket(winner_rounds, game_counter)
    _link_losers_bracket(loser_rounds)
    _link_winner_losers(winner_rounds, loser_rounds)

    if loser_rounds and loser_rounds[-1]:
        grand_final = BracketNode(GRAND_FINAL_ID, match_label=GRAND_FINAL_LABEL, game_number=game_counter)
        winners_final = winner_rounds[-1][0]
        losers_final = loser_rounds[-1][0]
        winners_final.next_match_id = grand_final.id
        losers_final.next_match_id = grand_final.id
        # Nobody drops out of the winners final into the losers bracket
        winners_final.loser_destination_match_id = None
        winner_rounds.append([grand_final])

    game_number = 1
    for round_nodes in winner_rounds:
        for node in round_nodes:
            node.game_number = game_number
            game_number += 1

    graph.format = DOUBLE_ELIMINATION
    graph.loser_rounds = loser_rounds

    logger.debug("Built double elimination bracket '%s': %d winner rounds, %d loser rounds",
                 name, len(winner_rounds), len(loser_rounds))
    return graph


def _generate_losers_bracket(winner_rounds: List[List[BracketNode]], game_counter: int):
    """
    Create the empty losers bracket rounds.

    Each winners round gets a drop-down round sized for its losers (round 1
    losers pair off, so half as many). When that drop-down round has two or
    more matches, a consolidation round follows where its winners meet.
    """
    loser_rounds = []

    def make_round(size):
        nonlocal game_counter
        round_num = len(loser_rounds) + 1
        round_nodes = []
        for i in range(size):
            round_nodes.append(BracketNode(f"LB-R{round_num}-M{i + 1}", game_number=game_counter))
            game_counter += 1
        return round_nodes

    for wb_round_idx, wb_round in enumerate(winner_rounds):
        num_matches = len(wb_round) / (2 if wb_round_idx == 0 else 1)
        if num_matches < 1 and wb_round_idx > 0:
            continue

        num_drop_down = math.ceil(num_matches)
        drop_down = make_round(num_drop_down)
        if drop_down:
            loser_rounds.append(drop_down)

        if num_drop_down / 2 >= 1:
            consolidation = make_round(num_drop_down // 2)
            if consolidation:
                loser_rounds.append(consolidation)

    return loser_rounds, game_counter


def _link_losers_bracket(loser_rounds: List[List[BracketNode]]) -> None:
    for round_idx in range(len(loser_rounds) - 1):
        next_round = loser_rounds[round_idx + 1]
        for j, node in enumerate(loser_rounds[round_idx]):
            if j // 2 < len(next_round):
                node.next_match_id = next_round[j // 2].id


def _link_winner_losers(winner_rounds: List[List[BracketNode]], loser_rounds: List[List[BracketNode]]) -> None:
    """
    Send each winners bracket loser to a losers bracket match.

    Round 1 losers pair up two per match; later rounds map one to one. The
    losers round cursor moves by 1 for the first two winners rounds and by 2
    after that. This does not line up with the drop-down rounds for every
    field size. Some losers bracket slots can stay empty, and a dropped loser
    can share a slot with a losers bracket winner, which then replaces it.
    """
    cursor = 0
    for wb_round_idx, wb_round in enumerate(winner_rounds):
        if cursor >= len(loser_rounds):
            continue
        target_round = loser_rounds[cursor]
        for i, node in enumerate(wb_round):
            target_idx = i // 2 if wb_round_idx == 0 else i
            if target_idx < len(target_round):
                node.loser_destination_match_id = target_round[target_idx].id
        cursor += 1 if wb_round_idx < 2 else 2


def loser_destination_game_number(graph: BracketGraph, node: BracketNode) -> Optional[int]:
    """Game number a node's loser drops to, for "Loser to G{n}" labels."""
    if not node.loser_destination_match_id:
        return None
    for other in graph.all_nodes():
        if other.id == node.loser_destination_match_id:
            return other.game_number or None
    return None
