from datetime import datetime, timezone
from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    registry = current_app.extensions['oddson_registry']
    return jsonify({
        'message': 'Odds On game server running',
        'activeRooms': len(registry),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
