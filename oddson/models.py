from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
import random
import string
import uuid

# Room game states. 'revealing' is never entered: results are computed and
# broadcast in the same step that records the final choice.
WAITING = 'waiting'
NEGOTIATING = 'negotiating'
PLAYING = 'playing'
FINISHED = 'finished'

# Proposal statuses
PENDING = 'pending'
ACCEPTED = 'accepted'
REJECTED = 'rejected'
COUNTERED = 'countered'

MAX_PLAYERS = 2


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_room_code(length=6, taken=()):
    """Generate a short, shareable room code not present in `taken`."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


def generate_proposal_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Player:
    id: str
    name: str

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            # Kept for clients that address players by socket id
            'socketId': self.id,
        }


@dataclass
class Proposal:
    proposer_id: str
    dare: str
    max_range: int
    id: str = field(default_factory=generate_proposal_id)
    status: str = PENDING
    created_at: datetime = field(default_factory=_utc_now)

    def to_dict(self):
        return {
            'id': self.id,
            'proposerId': self.proposer_id,
            'dare': self.dare,
            'maxRange': self.max_range,
            'status': self.status,
            'timestamp': self.created_at.isoformat(),
        }


@dataclass
class Room:
    id: str
    players: List[Player] = field(default_factory=list)
    state: str = WAITING
    dare: str = ''
    max_range: int = 10
    choices: Dict[str, int] = field(default_factory=dict)
    current_proposal: Optional[Proposal] = None
    proposal_history: List[Proposal] = field(default_factory=list)
    current_negotiator: Optional[str] = None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    @property
    def is_empty(self) -> bool:
        return not self.players

    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def other_players(self, player_id: str) -> List[Player]:
        return [p for p in self.players if p.id != player_id]

    def all_choices_in(self) -> bool:
        return len(self.players) == MAX_PLAYERS and all(p.id in self.choices for p in self.players)

    def to_dict(self):
        # Submitted numbers stay hidden until both are in and the room is finished
        revealed = self.state == FINISHED
        return {
            'id': self.id,
            'players': [p.to_dict() for p in self.players],
            'gameState': self.state,
            'dare': self.dare,
            'maxRange': self.max_range,
            'playerChoices': dict(self.choices) if revealed else {},
            'choicesMade': len(self.choices),
            'currentProposal': self.current_proposal.to_dict() if self.current_proposal else None,
            'proposalHistory': [p.to_dict() for p in self.proposal_history],
            'currentNegotiator': self.current_negotiator,
        }
