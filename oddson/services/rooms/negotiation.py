from typing import Optional

from oddson.models import (
    Room, Proposal,
    WAITING, NEGOTIATING, PLAYING, FINISHED,
    ACCEPTED, REJECTED, COUNTERED, PENDING,
)
from .errors import (
    NotInRoom, NotYourTurn, RoomOrProposalNotFound, StaleProposal,
    InvalidPayload, GameFinished,
)

ACCEPT = 'accept'
REJECT = 'reject'
COUNTER = 'counter'
ACTIONS = (ACCEPT, REJECT, COUNTER)


def require_member(room: Room, player_id: str) -> None:
    if not room.has_player(player_id):
        raise NotInRoom()


def _other_player_id(room: Room, player_id: str) -> Optional[str]:
    others = room.other_players(player_id)
    return others[0].id if others else None


def _open(room: Room, proposer_id: str, dare: str, max_range: int) -> Proposal:
    proposal = Proposal(proposer_id=proposer_id, dare=dare, max_range=max_range)
    room.proposal_history.append(proposal)
    room.current_proposal = proposal
    room.current_negotiator = _other_player_id(room, proposer_id)
    return proposal


def create_proposal(room: Room, proposer_id: str, dare: str, max_range: int) -> Proposal:
    """Open a new proposal; the other player (if any) becomes the negotiator.

    Numbers picked under the previous agreement are discarded.
    """
    require_member(room, proposer_id)
    proposal = _open(room, proposer_id, dare, max_range)
    room.choices.clear()
    room.state = NEGOTIATING
    return proposal


def assign_pending_negotiator(room: Room) -> Optional[str]:
    """Hand a proposal opened while alone to the player who joined since."""
    proposal = room.current_proposal
    if proposal is None or proposal.status != PENDING or room.current_negotiator:
        return None
    room.current_negotiator = _other_player_id(room, proposal.proposer_id)
    return room.current_negotiator


def check_response(room: Room, responder_id: str, proposal_id) -> Proposal:
    require_member(room, responder_id)
    proposal = room.current_proposal
    # A proposal whose author has left cannot be answered
    if proposal is None or not room.has_player(proposal.proposer_id):
        raise RoomOrProposalNotFound()
    if proposal_id != proposal.id:
        raise StaleProposal()
    if responder_id != room.current_negotiator:
        raise NotYourTurn()
    return proposal


def accept(room: Room, responder_id: str, proposal_id) -> Proposal:
    proposal = check_response(room, responder_id, proposal_id)
    proposal.status = ACCEPTED
    room.dare = proposal.dare
    room.max_range = proposal.max_range
    room.state = PLAYING
    room.current_negotiator = None
    return proposal


def reject(room: Room, responder_id: str, proposal_id) -> Proposal:
    proposal = check_response(room, responder_id, proposal_id)
    proposal.status = REJECTED
    room.current_proposal = None
    room.current_negotiator = None
    room.state = WAITING
    return proposal


def counter(room: Room, responder_id: str, proposal_id, dare, max_range):
    """Supersede the live proposal with the responder's own.

    Returns ``(original, counter_proposal)``; the turn flips back to the
    original proposer.
    """
    original = check_response(room, responder_id, proposal_id)
    if dare is None or max_range is None:
        raise InvalidPayload('counterProposal is required to counter')
    original.status = COUNTERED
    replacement = _open(room, responder_id, dare, max_range)
    room.current_negotiator = original.proposer_id
    return original, replacement


def apply_settings(room: Room, dare: str, max_range: int) -> None:
    # Direct path: negotiation state is left alone
    room.dare = dare
    room.max_range = max_range


def record_choice(room: Room, player_id: str, choice: int) -> Optional[dict]:
    """Store a player's number; returns the results once both are in."""
    require_member(room, player_id)
    if room.state == FINISHED:
        raise GameFinished()
    room.choices[player_id] = choice
    if not room.all_choices_in():
        return None
    values = [room.choices[p.id] for p in room.players]
    room.state = FINISHED
    return {
        'isMatch': values[0] == values[1],
        'choices': dict(room.choices),
        'dare': room.dare,
        'maxRange': room.max_range,
        'players': [p.to_dict() for p in room.players],
    }


def reset(room: Room) -> None:
    """Back to waiting; the proposal history is kept for review."""
    room.choices.clear()
    room.current_proposal = None
    room.current_negotiator = None
    room.state = WAITING
