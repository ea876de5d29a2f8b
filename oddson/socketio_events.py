from functools import wraps
from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from oddson import socketio
from oddson.models import Player
from oddson.services.rooms import SessionRegistry, negotiation
from oddson.services.rooms.errors import (
    GameError, RoomNotFound, RoomFull, AlreadyInRoom, RoomOrProposalNotFound,
    InvalidPayload,
)


def _get_sid() -> str:
    return request.sid  # type: ignore


def _reports_errors(handler):
    """Turn a GameError into a single 'error' event for the requester."""
    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except GameError as exc:
            current_app.logger.info(
                f"[rejected] event={handler.__name__} player={_get_sid()} kind={exc.kind} message={exc.message}"
            )
            emit('error', exc.to_dict())
    return wrapper


def _report_unexpected(exc):
    current_app.logger.error(f"[handler-crash] player={_get_sid()} {exc!r}", exc_info=exc)
    emit('error', {'kind': 'internal', 'message': 'Internal server error'})


# ---- Payload decoding ----

def _payload(data) -> dict:
    if not isinstance(data, dict):
        raise InvalidPayload('Expected an object payload')
    return data


def _room_id(value) -> str:
    if value is None or value == '':
        raise RoomNotFound()
    if not isinstance(value, str):
        raise InvalidPayload('roomId must be a string')
    return value.strip().upper()


def _text(value, field, max_length, required=True) -> str:
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise InvalidPayload(f'{field} must be a string')
    value = value.strip()
    if required and not value:
        raise InvalidPayload(f'{field} is required')
    if len(value) > max_length:
        raise InvalidPayload(f'{field} must be at most {max_length} characters')
    return value


def _integer(value, field, low, high) -> int:
    if isinstance(value, bool):
        raise InvalidPayload(f'{field} must be a whole number')
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidPayload(f'{field} must be a whole number')
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise InvalidPayload(f'{field} must be a whole number')
    if not low <= value <= high:
        raise InvalidPayload(f'{field} must be between {low} and {high}')
    return value


class GameProtocol:
    """Per-event handlers for the room protocol.

    Bound to one SessionRegistry; every handler runs its whole
    read-validate-mutate step under the registry lock and broadcasts the
    outcome to the affected Socket.IO room.
    """

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    # ---- helpers ----

    def _max_range(self, value) -> int:
        cfg = current_app.config
        return _integer(value, 'maxRange', int(cfg.get('MIN_RANGE', 2)), int(cfg.get('MAX_RANGE_LIMIT', 1000)))

    def _dare(self, value, required=True) -> str:
        return _text(value, 'dare', int(current_app.config.get('MAX_DARE_LENGTH', 280)), required=required)

    def _depart(self, room_id: str, sid: str) -> None:
        remaining = self.registry.remove_player(room_id, sid)
        leave_room(room_id)
        if remaining is None:
            current_app.logger.info(f"[room-closed] room={room_id}")
            return
        emit('player-left', {
            'playerId': sid,
            'remainingPlayers': [p.to_dict() for p in remaining.players],
            'room': remaining.to_dict(),
        }, to=room_id, include_self=False)

    # ---- connection lifecycle ----

    def on_connect(self, auth=None):
        current_app.logger.info(f"[connect] player={_get_sid()}")
        emit('connected', {'playerId': _get_sid()})

    def on_disconnect(self, reason=None):
        sid = _get_sid()
        with self.registry.lock:
            removed = self.registry.remove_player_from_all_rooms(sid)
            for room_id, room in removed:
                if room is None:
                    current_app.logger.info(f"[room-closed] room={room_id}")
                    continue
                emit('player-left', {
                    'playerId': sid,
                    'remainingPlayers': [p.to_dict() for p in room.players],
                    'room': room.to_dict(),
                }, to=room_id, include_self=False)
        current_app.logger.info(f"[disconnect] player={sid} rooms={[rid for rid, _ in removed]}")

    # ---- room membership ----

    @_reports_errors
    def join_game(self, data=None):
        data = _payload(data)
        sid = _get_sid()
        name = _text(data.get('playerName'), 'playerName', int(current_app.config.get('MAX_NAME_LENGTH', 32)))
        requested = data.get('roomId')
        with self.registry.lock:
            current = self.registry.room_of(sid)
            room = None
            if requested:
                room = self.registry.get_room(_room_id(requested))
                if current is room:
                    raise AlreadyInRoom('You are already in this room')
                if room.is_full:
                    raise RoomFull()
            # A connection sits in at most one room: leave the old one first
            if current is not None:
                self._depart(current.id, sid)
            if room is None:
                room = self.registry.create_room()
                current_app.logger.info(f"[room-created] room={room.id}")
            player = Player(id=sid, name=name)
            self.registry.add_player(room.id, player)
            join_room(room.id)
            negotiation.assign_pending_negotiator(room)

            emit('game-joined', {
                'success': True,
                'roomId': room.id,
                'player': player.to_dict(),
                'room': room.to_dict(),
            })
            emit('player-joined', {
                'player': player.to_dict(),
                'room': room.to_dict(),
            }, to=room.id, include_self=False)
        current_app.logger.info(f"[join] room={room.id} player={sid} name={name!r} players={len(room.players)}")

    @_reports_errors
    def leave_game(self, data=None):
        room_id = _room_id(_payload(data).get('roomId'))
        sid = _get_sid()
        with self.registry.lock:
            self._depart(room_id, sid)
        emit('game-left', {'roomId': room_id})
        current_app.logger.info(f"[leave] room={room_id} player={sid}")

    @_reports_errors
    def get_room(self, data=None):
        room_id = _room_id(_payload(data).get('roomId'))
        with self.registry.lock:
            room = self.registry.get_room(room_id)
            negotiation.require_member(room, _get_sid())
            emit('room-state', {'room': room.to_dict()})

    # ---- negotiation ----

    @_reports_errors
    def create_proposal(self, data=None):
        data = _payload(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self.registry.get_room(_room_id(data.get('roomId')))
            negotiation.require_member(room, sid)
            dare = self._dare(data.get('dare'))
            max_range = self._max_range(data.get('maxRange'))
            proposal = negotiation.create_proposal(room, sid, dare, max_range)
            emit('proposal-created', {
                'proposal': proposal.to_dict(),
                'proposerName': room.get_player(sid).name,
                'currentNegotiator': room.current_negotiator,
                'room': room.to_dict(),
            }, to=room.id)
        current_app.logger.info(
            f"[proposal] room={room.id} proposal={proposal.id} by={sid} negotiator={room.current_negotiator}"
        )

    @_reports_errors
    def respond_to_proposal(self, data=None):
        data = _payload(data)
        sid = _get_sid()
        action = data.get('action')
        proposal_id = data.get('proposalId')
        with self.registry.lock:
            room = self.registry.find_room(_room_id(data.get('roomId')) if data.get('roomId') else None)
            if room is None:
                raise RoomOrProposalNotFound()
            if action not in negotiation.ACTIONS:
                raise InvalidPayload(f"action must be one of {', '.join(negotiation.ACTIONS)}")
            # Turn and staleness are checked before the counter payload is read
            negotiation.check_response(room, sid, proposal_id)
            responder_name = room.get_player(sid).name

            if action == negotiation.ACCEPT:
                proposal = negotiation.accept(room, sid, proposal_id)
                emit('proposal-accepted', {
                    'proposal': proposal.to_dict(),
                    'responderName': responder_name,
                    'finalSettings': {'dare': room.dare, 'maxRange': room.max_range},
                    'room': room.to_dict(),
                }, to=room.id)
            elif action == negotiation.REJECT:
                proposal = negotiation.reject(room, sid, proposal_id)
                emit('proposal-rejected', {
                    'proposal': proposal.to_dict(),
                    'responderName': responder_name,
                    'room': room.to_dict(),
                }, to=room.id)
            else:
                payload = data.get('counterProposal')
                if not isinstance(payload, dict):
                    raise InvalidPayload('counterProposal is required to counter')
                dare = self._dare(payload.get('dare'))
                max_range = self._max_range(payload.get('maxRange'))
                original, proposal = negotiation.counter(room, sid, proposal_id, dare, max_range)
                emit('proposal-countered', {
                    'originalProposal': original.to_dict(),
                    'counterProposal': proposal.to_dict(),
                    'responderName': responder_name,
                    'currentNegotiator': room.current_negotiator,
                    'room': room.to_dict(),
                }, to=room.id)
        current_app.logger.info(
            f"[respond] room={room.id} action={action} proposal={proposal.id} by={sid} state={room.state}"
        )

    # ---- play ----

    @_reports_errors
    def set_game_settings(self, data=None):
        data = _payload(data)
        with self.registry.lock:
            room = self.registry.get_room(_room_id(data.get('roomId')))
            dare = self._dare(data.get('dare'), required=False)
            max_range = self._max_range(data.get('maxRange'))
            negotiation.apply_settings(room, dare, max_range)
            emit('game-settings-updated', {'dare': room.dare, 'maxRange': room.max_range}, to=room.id)
        current_app.logger.info(f"[settings] room={room.id} maxRange={max_range} by={_get_sid()}")

    @_reports_errors
    def make_choice(self, data=None):
        data = _payload(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self.registry.get_room(_room_id(data.get('roomId')))
            negotiation.require_member(room, sid)
            choice = _integer(data.get('choice'), 'choice', 1, room.max_range)
            results = negotiation.record_choice(room, sid, choice)
            if results is not None:
                emit('game-results', results, to=room.id)
            else:
                emit('choice-made', {
                    'playerId': sid,
                    'choicesMade': len(room.choices),
                    'totalPlayers': len(room.players),
                }, to=room.id, include_self=False)
        if results is not None:
            current_app.logger.info(f"[results] room={room.id} match={results['isMatch']}")
        else:
            current_app.logger.info(f"[choice] room={room.id} player={sid} made={len(room.choices)}")

    @_reports_errors
    def reset_game(self, data=None):
        # Accept the bare room id older clients send as well as {roomId}
        raw = data.get('roomId') if isinstance(data, dict) else data
        with self.registry.lock:
            room = self.registry.get_room(_room_id(raw))
            negotiation.reset(room)
            emit('game-reset', to=room.id)
        current_app.logger.info(f"[reset] room={room.id} by={_get_sid()} history={len(room.proposal_history)}")


def register_socketio_handlers(registry: SessionRegistry, namespace: str = '/') -> GameProtocol:
    """Register Socket.IO event handlers bound to the given registry."""
    protocol = GameProtocol(registry)
    socketio.on_event('connect', protocol.on_connect, namespace=namespace)
    socketio.on_event('disconnect', protocol.on_disconnect, namespace=namespace)
    socketio.on_event('join-game', protocol.join_game, namespace=namespace)
    socketio.on_event('leave-game', protocol.leave_game, namespace=namespace)
    socketio.on_event('get-room', protocol.get_room, namespace=namespace)
    socketio.on_event('create-proposal', protocol.create_proposal, namespace=namespace)
    socketio.on_event('respond-to-proposal', protocol.respond_to_proposal, namespace=namespace)
    socketio.on_event('set-game-settings', protocol.set_game_settings, namespace=namespace)
    socketio.on_event('make-choice', protocol.make_choice, namespace=namespace)
    socketio.on_event('reset-game', protocol.reset_game, namespace=namespace)
    socketio.on_error(namespace)(_report_unexpected)
    return protocol
