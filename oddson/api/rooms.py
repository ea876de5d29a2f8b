from flask import Blueprint, jsonify, current_app

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    """Read-only snapshot of a room; submitted numbers stay hidden until reveal."""
    registry = current_app.extensions['oddson_registry']
    with registry.lock:
        room = registry.find_room(room_id.upper())
        if room is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(room.to_dict())
