import os

class Config:
    USERS_FOLDER = os.environ.get('TASKTRACKER_USERS_FOLDER', os.path.join(os.getcwd(), 'users'))
    # "today" is computed in this zone; UTC keeps dates aligned with ISO timestamps
    TIMEZONE = os.environ.get('TASKTRACKER_TIMEZONE', 'UTC')
    SESSION_COOKIE = 'sessionId'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', 3000))
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
