class GameError(Exception):
    """A rejected client request.

    Carries a stable machine-readable ``kind`` next to the human message so
    clients can branch without parsing text. Raised before any room state is
    mutated.
    """

    kind = 'game_error'
    default_message = 'Request could not be processed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'kind': self.kind, 'message': self.message}


class RoomNotFound(GameError):
    kind = 'room_not_found'
    default_message = 'Room not found'


class RoomFull(GameError):
    kind = 'room_full'
    default_message = 'Room is full'


class NotInRoom(GameError):
    kind = 'not_in_room'
    default_message = 'You are not in this room'


class NotYourTurn(GameError):
    kind = 'not_your_turn'
    default_message = "It's not your turn to respond"


class RoomOrProposalNotFound(GameError):
    kind = 'room_or_proposal_not_found'
    default_message = 'Room or proposal not found'


class StaleProposal(GameError):
    kind = 'stale_proposal'
    default_message = 'That proposal is no longer the current one'


class AlreadyInRoom(GameError):
    kind = 'already_in_room'
    default_message = 'You are already in a room'


class InvalidPayload(GameError):
    kind = 'invalid_payload'
    default_message = 'Invalid request'


class GameFinished(GameError):
    kind = 'game_finished'
    default_message = 'Game already finished, reset to play again'
