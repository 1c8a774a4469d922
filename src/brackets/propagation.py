"""
Score entry and advancement of winners and losers through a bracket.

The graph is changed in place. Callers must not submit results for the same
bracket concurrently; see ``storage.BracketRepository.submit_result`` for a
locked entry point.
"""
import logging
from typing import List

from .errors import BracketIntegrityError, InvalidScoreError, NodeNotFoundError, SlotNotFillableError
from .models import BracketGraph, BracketNode, MatchSlot, UNSET

logger = logging.getLogger(__name__)

NEXT_MATCH = 'next_match_id'
LOSER_DESTINATION = 'loser_destination_match_id'


def find_node(graph: BracketGraph, match_id: str):
    """Look a match up by id across winner rounds, loser rounds and round-robin matches."""
    for node in graph.all_nodes():
        if node.id == match_id:
            return node
    raise NodeNotFoundError(match_id)


def _game_number_key(node):
    if node.game_number is UNSET or node.game_number is None:
        return (1, 0)
    return (0, node.game_number)


def feeders_of(graph: BracketGraph, target_id: str, attr: str = NEXT_MATCH) -> List[BracketNode]:
    """Nodes whose ``attr`` link points at ``target_id``, ordered by game number (unnumbered last)."""
    feeders = [n for n in graph.all_nodes() if getattr(n, attr, None) == target_id]
    return sorted(feeders, key=_game_number_key)


def _validate_score(score, side: str) -> None:
    if score is None:
        return
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidScoreError(f"Score {side} must be an integer, got {score!r}")
    if score < 0:
        raise InvalidScoreError(f"Score {side} must not be negative, got {score}")


def _feeder_position(graph: BracketGraph, node: BracketNode, target_id: str, attr: str) -> int:
    feeders = feeders_of(graph, target_id, attr)
    position = [f.id for f in feeders].index(node.id)
    if position > 1:
        raise BracketIntegrityError(f"{target_id} has more than two feeders via {attr}")
    return position


def _resolve_link(graph: BracketGraph, node: BracketNode, target_id: str) -> BracketNode:
    try:
        return find_node(graph, target_id)
    except NodeNotFoundError:
        raise BracketIntegrityError(f"{node.id} links to missing match {target_id}")


def record_result(graph: BracketGraph, match_id: str, score_a, score_b) -> BracketGraph:
    """
    Record a match score and advance the result one hop.

    The winner is copied into the slot of its next match that matches its
    position among that match's feeders, whatever the slot held; replacing
    someone other than this match's own participants is logged as a warning.
    The loser, if the node has a loser
    destination, goes into the matching slot there only while it is empty,
    otherwise into the other slot if that one is empty; a slot filled by an
    earlier entry of this same match is reused. A tie or a missing
    score leaves ``winner_id`` None and nothing downstream changes. Entering
    a result again re-runs the same steps; matches further downstream are
    not revisited.
    """
    node = find_node(graph, match_id)

    if node.slot_a.is_empty or node.slot_b.is_empty:
        raise SlotNotFillableError(match_id)
    _validate_score(score_a, 'A')
    _validate_score(score_b, 'B')

    node.slot_a.score = score_a
    node.slot_b.score = score_b

    if score_a is None or score_b is None or score_a == score_b:
        node.winner_id = None
        logger.debug("Match %s recorded %s-%s, no winner", match_id, score_a, score_b)
        return graph

    if score_a > score_b:
        winner, loser = node.slot_a, node.slot_b
    else:
        winner, loser = node.slot_b, node.slot_a
    node.winner_id = winner.participant_id
    logger.debug("Match %s recorded %s-%s, winner %s", match_id, score_a, score_b, winner.name)

    if node.kind == 'round-robin':
        return graph

    if node.next_match_id:
        _advance_winner(graph, node, winner)

    if node.loser_destination_match_id and loser.participant_id is not None:
        _drop_loser(graph, node, loser)

    return graph


def _copy_slot(slot: MatchSlot) -> MatchSlot:
    return MatchSlot(slot.participant_id, slot.name, None, slot.avatar_ref)


def _advance_winner(graph: BracketGraph, node: BracketNode, winner: MatchSlot) -> None:
    target = _resolve_link(graph, node, node.next_match_id)
    position = _feeder_position(graph, node, target.id, NEXT_MATCH)
    attr = 'slot_a' if position == 0 else 'slot_b'

    replaced = getattr(target, attr)
    if replaced.participant_id not in (None, node.slot_a.participant_id, node.slot_b.participant_id):
        logger.warning("Winner of %s replaced %s in %s; %s is no longer in the bracket",
                       node.id, replaced.name, target.id, replaced.participant_id)
    setattr(target, attr, _copy_slot(winner))


def _drop_loser(graph: BracketGraph, node: BracketNode, loser: MatchSlot) -> None:
    target = _resolve_link(graph, node, node.loser_destination_match_id)
    position = _feeder_position(graph, node, target.id, LOSER_DESTINATION)
    preferred, fallback = ('slot_a', 'slot_b') if position == 0 else ('slot_b', 'slot_a')

    # A slot already holding one of this match's participants came from an
    # earlier entry of this result and is rewritten in place.
    own_ids = {node.slot_a.participant_id, node.slot_b.participant_id}
    for attr in (preferred, fallback):
        if getattr(target, attr).participant_id in own_ids:
            setattr(target, attr, _copy_slot(loser))
            return

    if getattr(target, preferred).is_empty:
        setattr(target, preferred, _copy_slot(loser))
    elif getattr(target, fallback).is_empty:
        setattr(target, fallback, _copy_slot(loser))
    else:
        logger.warning("Loser of %s not placed: both slots of %s are taken", node.id, target.id)


def check_integrity(graph: BracketGraph) -> None:
    """
    Verify the bracket's links.

    Every link must point at an existing node, no node may have more than two
    feeders per link type, and following links must never loop back.
    """
    nodes = {n.id: n for n in graph.all_nodes()}
    if len(nodes) != len(graph.all_nodes()):
        raise BracketIntegrityError(f"Duplicate match ids in bracket {graph.id}")

    counts = {NEXT_MATCH: {}, LOSER_DESTINATION: {}}
    for node in nodes.values():
        for attr in (NEXT_MATCH, LOSER_DESTINATION):
            target_id = getattr(node, attr, None)
            if not target_id:
                continue
            if target_id not in nodes:
                raise BracketIntegrityError(f"{node.id} links to missing match {target_id}")
            counts[attr][target_id] = counts[attr].get(target_id, 0) + 1
            if counts[attr][target_id] > 2:
                raise BracketIntegrityError(f"{target_id} has more than two feeders via {attr}")

    visiting, done = set(), set()

    def visit(node_id):
        if node_id in done:
            return
        if node_id in visiting:
            raise BracketIntegrityError(f"Bracket {graph.id} has a cycle through {node_id}")
        visiting.add(node_id)
        node = nodes[node_id]
        for attr in (NEXT_MATCH, LOSER_DESTINATION):
            target_id = getattr(node, attr, None)
            if target_id:
                visit(target_id)
        visiting.discard(node_id)
        done.add(node_id)

    for node_id in nodes:
        visit(node_id)
