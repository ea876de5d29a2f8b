import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed for both HTTP and Socket.IO
    CORS_ALLOWED_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Room codes and game limits
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    DEFAULT_MAX_RANGE = int(os.environ.get('DEFAULT_MAX_RANGE', '10'))
    MIN_RANGE = int(os.environ.get('MIN_RANGE', '2'))
    MAX_RANGE_LIMIT = int(os.environ.get('MAX_RANGE_LIMIT', '1000'))
    MAX_DARE_LENGTH = int(os.environ.get('MAX_DARE_LENGTH', '280'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '32'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Dev server bind address
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
