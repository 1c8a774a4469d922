"""
Bracket data model: participants, match slots, bracket nodes and the graph.

Objects serialize to plain dicts with the camelCase keys used by stored
brackets. Optional node fields that were never set hold ``UNSET`` and are
left out of ``to_dict()``; fields set to ``None`` are written as null.
"""
import time
import uuid
from typing import Dict, List, Optional

SINGLE_ELIMINATION = 'single-elimination'
DOUBLE_ELIMINATION = 'double-elimination'
ROUND_ROBIN = 'round-robin'
FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, ROUND_ROBIN)

PARTICIPANT_KINDS = ('team', 'player')

TBD = 'TBD'

UNPLAYED = 'unplayed'
IN_PROGRESS = 'in-progress'
RESOLVED = 'resolved'


class _Unset:
    def __bool__(self):
        return False

    def __repr__(self):
        return 'UNSET'

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNSET = _Unset()


def new_bracket_id() -> str:
    return f"bracket-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _put(data: Dict, key: str, value) -> None:
    if value is not UNSET:
        data[key] = value


class Participant:
    def __init__(self, id, name, avatar_ref=None):
        self.id = id
        self.name = name
        self.avatar_ref = avatar_ref

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'name': self.name}
        if self.avatar_ref is not None:
            data['avatarRef'] = self.avatar_ref
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Participant':
        return cls(id=data['id'], name=data['name'], avatar_ref=data.get('avatarRef'))

    def __eq__(self, other):
        if not isinstance(other, Participant):
            return NotImplemented
        return (self.id, self.name, self.avatar_ref) == (other.id, other.name, other.avatar_ref)

    def __repr__(self):
        return f"Participant(id={self.id}, name={self.name})"


class MatchSlot:
    """One side of a match. An empty slot has ``participant_id`` None."""

    def __init__(self, participant_id=None, name=TBD, score=None, avatar_ref=None):
        self.participant_id = participant_id
        self.name = name
        self.score = score
        self.avatar_ref = avatar_ref

    @classmethod
    def tbd(cls) -> 'MatchSlot':
        return cls()

    @classmethod
    def for_participant(cls, participant, score=None) -> 'MatchSlot':
        return cls(participant.id, participant.name, score, participant.avatar_ref)

    @property
    def is_empty(self) -> bool:
        return self.participant_id is None

    def to_dict(self) -> Dict:
        data = {'participantId': self.participant_id, 'name': self.name, 'score': self.score}
        if self.avatar_ref is not None:
            data['avatarRef'] = self.avatar_ref
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'MatchSlot':
        return cls(
            participant_id=data.get('participantId'),
            name=data.get('name', TBD),
            score=data.get('score'),
            avatar_ref=data.get('avatarRef'),
        )

    def __eq__(self, other):
        if not isinstance(other, MatchSlot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"MatchSlot(participant_id={self.participant_id}, name={self.name}, score={self.score})"


class BracketNode:
    """A single elimination-style match (single or double elimination)."""

    kind = 'elimination'

    def __init__(self, id, slot_a=None, slot_b=None, winner_id=None, match_label=None,
                 next_match_id=None, loser_destination_match_id=UNSET,
                 game_number=UNSET, is_bye=UNSET):
        self.id = id
        self.slot_a = slot_a if slot_a is not None else MatchSlot.tbd()
        self.slot_b = slot_b if slot_b is not None else MatchSlot.tbd()
        self.winner_id = winner_id
        self.match_label = match_label if match_label is not None else id
        self.next_match_id = next_match_id
        self.loser_destination_match_id = loser_destination_match_id
        self.game_number = game_number
        self.is_bye = is_bye

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'slotA': self.slot_a.to_dict(),
            'slotB': self.slot_b.to_dict(),
            'winnerId': self.winner_id,
            'matchLabel': self.match_label,
            'nextMatchId': self.next_match_id,
        }
        _put(data, 'loserDestinationMatchId', self.loser_destination_match_id)
        _put(data, 'gameNumber', self.game_number)
        _put(data, 'isBye', self.is_bye)
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'BracketNode':
        return cls(
            id=data['id'],
            slot_a=MatchSlot.from_dict(data['slotA']),
            slot_b=MatchSlot.from_dict(data['slotB']),
            winner_id=data.get('winnerId'),
            match_label=data.get('matchLabel'),
            next_match_id=data.get('nextMatchId'),
            loser_destination_match_id=data.get('loserDestinationMatchId', UNSET),
            game_number=data.get('gameNumber', UNSET),
            is_bye=data.get('isBye', UNSET),
        )

    def __repr__(self):
        return (f"BracketNode(id={self.id}, a={self.slot_a.name}, b={self.slot_b.name}, "
                f"winner_id={self.winner_id}, next={self.next_match_id})")


class RoundRobinMatch:
    """A round-robin pairing. Has no downstream links."""

    kind = 'round-robin'

    def __init__(self, id, slot_a, slot_b, winner_id=None, pit_number=UNSET):
        self.id = id
        self.slot_a = slot_a
        self.slot_b = slot_b
        self.winner_id = winner_id
        self.pit_number = pit_number

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'slotA': self.slot_a.to_dict(),
            'slotB': self.slot_b.to_dict(),
            'winnerId': self.winner_id,
        }
        _put(data, 'pitNumber', self.pit_number)
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'RoundRobinMatch':
        return cls(
            id=data['id'],
            slot_a=MatchSlot.from_dict(data['slotA']),
            slot_b=MatchSlot.from_dict(data['slotB']),
            winner_id=data.get('winnerId'),
            pit_number=data.get('pitNumber', UNSET),
        )

    def __repr__(self):
        return f"RoundRobinMatch(id={self.id}, winner_id={self.winner_id})"


def node_state(node) -> str:
    """Return 'unplayed', 'in-progress' or 'resolved' for a node or match."""
    score_a, score_b = node.slot_a.score, node.slot_b.score
    if score_a is None and score_b is None:
        return UNPLAYED
    if node.winner_id is not None:
        return RESOLVED
    return IN_PROGRESS


class BracketGraph:
    def __init__(self, id, name, format, participant_kind, participants,
                 winner_rounds=None, loser_rounds=None, matches=None, pits=1, league_id=None):
        self.id = id
        self.name = name
        self.format = format
        self.participant_kind = participant_kind
        self.participants = participants
        self.winner_rounds = winner_rounds
        self.loser_rounds = loser_rounds
        self.matches = matches
        self.pits = pits
        self.league_id = league_id

    def all_nodes(self) -> List:
        """All nodes in reading order: winner rounds, loser rounds, round-robin matches."""
        nodes = []
        for rounds in (self.winner_rounds, self.loser_rounds):
            for round_nodes in rounds or []:
                nodes.extend(round_nodes)
        nodes.extend(self.matches or [])
        return nodes

    def participant(self, participant_id) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'format': self.format,
            'participantKind': self.participant_kind,
            'participants': [p.to_dict() for p in self.participants],
            'pits': self.pits,
        }
        if self.league_id is not None:
            data['leagueId'] = self.league_id
        if self.winner_rounds is not None:
            data['winnerRounds'] = [[n.to_dict() for n in r] for r in self.winner_rounds]
        if self.loser_rounds is not None:
            data['loserRounds'] = [[n.to_dict() for n in r] for r in self.loser_rounds]
        if self.matches is not None:
            data['matches'] = [m.to_dict() for m in self.matches]
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'BracketGraph':
        def rounds(key):
            if key not in data:
                return None
            return [[BracketNode.from_dict(n) for n in r] for r in data[key]]

        matches = None
        if 'matches' in data:
            matches = [RoundRobinMatch.from_dict(m) for m in data['matches']]

        return cls(
            id=data['id'],
            name=data['name'],
            format=data['format'],
            participant_kind=data.get('participantKind', 'team'),
            participants=[Participant.from_dict(p) for p in data.get('participants', [])],
            winner_rounds=rounds('winnerRounds'),
            loser_rounds=rounds('loserRounds'),
            matches=matches,
            pits=data.get('pits', 1),
            league_id=data.get('leagueId'),
        )

    def __repr__(self):
        return f"BracketGraph(id={self.id}, name={self.name}, format={self.format}, participants={len(self.participants)})"
