"""
Unit tests for single elimination bracket generation.
"""
import pytest

from brackets.elimination import (
    build_single_elimination,
    calculate_bracket_size,
    calculate_byes,
    calculate_rounds,
    champion,
    get_round_name,
    round_titles,
)
from brackets.engine import list_playable_nodes, record_result
from brackets.propagation import check_integrity


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_get_round_name(self):
        assert get_round_name(2) == "Final"
        assert get_round_name(4) == "Semifinal"
        assert get_round_name(8) == "Quarterfinal"
        assert get_round_name(16) == "Round of 16"

    def test_round_titles(self):
        assert round_titles(3) == ["Quarterfinal", "Semifinal", "Final"]
        assert round_titles(1) == ["Final"]

    def test_calculate_bracket_size_exact_power(self):
        """Test bracket size for exact power of 2."""
        assert calculate_bracket_size(8) == 8
        assert calculate_bracket_size(16) == 16
        assert calculate_bracket_size(2) == 2

    def test_calculate_bracket_size_not_power(self):
        """Test bracket size rounds up to next power of 2."""
        assert calculate_bracket_size(3) == 4
        assert calculate_bracket_size(5) == 8
        assert calculate_bracket_size(9) == 16

    def test_calculate_bracket_size_zero(self):
        assert calculate_bracket_size(0) == 0

    def test_calculate_rounds(self):
        assert calculate_rounds(2) == 1
        assert calculate_rounds(5) == 3
        assert calculate_rounds(8) == 3
        assert calculate_rounds(9) == 4

    def test_calculate_byes(self):
        assert calculate_byes(8) == 0
        assert calculate_byes(5) == 3
        assert calculate_byes(6) == 2
        assert calculate_byes(12) == 4


class TestFiveParticipantBracket:
    """The 5-participant layout: 3 byes, one first-round match."""

    @pytest.fixture
    def graph(self, lettered_participants, keep_order):
        return build_single_elimination("Cup", lettered_participants, shuffler=keep_order)

    def test_round_sizes(self, graph):
        assert [len(r) for r in graph.winner_rounds] == [1, 2, 1]

    def test_non_bye_participants_play_round_one(self, graph):
        match = graph.winner_rounds[0][0]
        assert match.id == "R1-M1"
        assert (match.slot_a.participant_id, match.slot_b.participant_id) == ("D", "E")

    def test_one_round_two_match_waits_for_round_one(self, graph):
        open_match, full_match = graph.winner_rounds[1]
        assert open_match.slot_a.is_empty
        assert open_match.slot_b.participant_id == "A"
        assert full_match.slot_a.participant_id == "B"
        assert full_match.slot_b.participant_id == "C"

    def test_final_is_empty(self, graph):
        final = graph.winner_rounds[2][0]
        assert final.slot_a.is_empty and final.slot_b.is_empty
        assert final.next_match_id is None

    def test_links(self, graph):
        assert graph.winner_rounds[0][0].next_match_id == "R2-M1"
        assert [n.next_match_id for n in graph.winner_rounds[1]] == ["R3-M1", "R3-M1"]

    def test_round_one_result_fills_open_slot(self, graph):
        record_result(graph, "R1-M1", 11, 7)
        open_match = graph.winner_rounds[1][0]
        assert open_match.slot_a.participant_id == "D"
        assert open_match.slot_b.participant_id == "A"

    def test_games_numbered_in_reading_order(self, graph):
        assert [n.game_number for n in graph.all_nodes()] == [1, 2, 3, 4]

    def test_participants_stored_in_seeded_order(self, graph):
        assert [p.id for p in graph.participants] == list("ABCDE")


class TestBracketStructure:
    """Structural checks on generated brackets."""

    def test_two_participants(self, make_participants, keep_order):
        graph = build_single_elimination("Duel", make_participants(2), shuffler=keep_order)
        assert len(graph.winner_rounds) == 1
        only = graph.winner_rounds[0][0]
        assert only.id == "R1-M1"
        assert only.next_match_id is None

    def test_power_of_two_has_no_byes(self, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(8), shuffler=keep_order)
        assert [len(r) for r in graph.winner_rounds] == [4, 2, 1]
        for node in graph.winner_rounds[1]:
            assert node.slot_a.is_empty and node.slot_b.is_empty

    def test_node_ids_follow_round_and_index(self, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(8), shuffler=keep_order)
        ids = [[n.id for n in r] for r in graph.winner_rounds]
        assert ids == [["R1-M1", "R1-M2", "R1-M3", "R1-M4"], ["R2-M1", "R2-M2"], ["R3-M1"]]

    def test_labels_match_ids(self, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(6), shuffler=keep_order)
        for node in graph.all_nodes():
            assert node.match_label == node.id

    def test_metadata(self, make_participants):
        graph = build_single_elimination("Cup", make_participants(4), participant_kind='player',
                                         pits=3, league_id='lg')
        assert graph.format == 'single-elimination'
        assert graph.participant_kind == 'player'
        assert graph.pits == 3
        assert graph.league_id == 'lg'
        assert graph.loser_rounds is None
        assert graph.id.startswith('bracket-')

    def test_uses_shuffler(self, make_participants):
        graph = build_single_elimination("Cup", make_participants(4), shuffler=lambda items: list(reversed(items)))
        assert graph.winner_rounds[0][0].slot_a.participant_id == "p4"


def play_out(graph):
    """Resolve every playable match with slot A winning."""
    while True:
        playable = list_playable_nodes(graph)
        if not playable:
            return
        record_result(graph, playable[0].id, 1, 0)


@pytest.mark.slow
class TestSingleEliminationCompleteness:
    """Properties that hold for every field size."""

    @pytest.mark.parametrize("count", range(2, 34))
    def test_round_one_plus_byes_covers_everyone(self, count, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(count), shuffler=keep_order)
        assert 2 * len(graph.winner_rounds[0]) + calculate_byes(count) == count

    @pytest.mark.parametrize("count", range(2, 34))
    def test_links_are_consistent(self, count, make_participants):
        check_integrity(build_single_elimination("Cup", make_participants(count)))

    @pytest.mark.parametrize("count", range(2, 34))
    def test_full_play_has_n_minus_one_matches(self, count, make_participants):
        graph = build_single_elimination("Cup", make_participants(count))
        play_out(graph)
        resolved = [n for n in graph.all_nodes() if n.winner_id is not None]
        assert len(resolved) == count - 1
        assert champion(graph) is not None


class TestChampion:

    def test_no_champion_before_final(self, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(4), shuffler=keep_order)
        assert champion(graph) is None

    def test_champion_after_final(self, make_participants, keep_order):
        graph = build_single_elimination("Cup", make_participants(4), shuffler=keep_order)
        record_result(graph, "R1-M1", 3, 1)
        record_result(graph, "R1-M2", 0, 2)
        record_result(graph, "R2-M1", 4, 6)
        assert champion(graph).id == "p4"
