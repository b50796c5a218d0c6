from flask import Flask, request, jsonify, json, g
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from functools import wraps
import logging

from config import Config
from errors import TaskTrackerError, InternalError, ValidationError
from sessions import SessionRegistry
from services import AccountService, AnalysisService, TaskService, utc_now
from storage import UserLocks, UserStore

logger = logging.getLogger(__name__)


def read_json():
    """Request body as a dict; anything else is treated as a server-side parse failure."""
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise InternalError("Malformed request body")
    return data


def create_app(config=None, clock=utc_now):
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)
    CORS(app)

    logging.basicConfig(level=app.config['LOG_LEVEL'])

    store = UserStore(app.config['USERS_FOLDER'])
    locks = UserLocks()
    sessions = SessionRegistry()
    accounts = AccountService(store, sessions, locks)
    tasks = TaskService(store, locks, tz=app.config['TIMEZONE'], clock=clock)
    analysis = AnalysisService(store, locks, tz=app.config['TIMEZONE'], clock=clock)
    app.extensions['tasktracker'] = {
        'store': store,
        'sessions': sessions,
        'accounts': accounts,
        'tasks': tasks,
        'analysis': analysis,
    }
    cookie_name = app.config['SESSION_COOKIE']

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = request.cookies.get(cookie_name)
            g.session_token = token
            g.user_id = sessions.resolve(token)
            return view(*args, **kwargs)
        return wrapper

    @app.before_request
    def log_request():
        logger.info(f"{request.method} {request.path}")

    @app.errorhandler(TaskTrackerError)
    def handle_tracker_error(e):
        if e.status_code >= 500:
            logger.error(f"Error handling {request.method} {request.path}: {e.message}")
            return jsonify({"error": "Internal server error"}), 500
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        # keeps werkzeug headers such as Allow on 405
        response = e.get_response()
        response.data = json.dumps({"error": e.name})
        response.content_type = "application/json"
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unexpected error handling {request.method} {request.path}")
        return jsonify({"error": "Internal server error"}), 500

    @app.route('/register', methods=['POST'])
    def register():
        data = read_json()
        accounts.register(
            data.get('name'),
            data.get('userId'),
            data.get('password'),
            data.get('gmail'),
        )
        return jsonify({"message": "User registered successfully"})

    @app.route('/login', methods=['POST'])
    def login():
        data = read_json()
        token = accounts.login(data.get('userId'), data.get('password'))
        response = jsonify({"message": "Login successful"})
        response.set_cookie(cookie_name, token, httponly=True)
        return response

    @app.route('/logout', methods=['GET'])
    @login_required
    def logout():
        accounts.logout(g.session_token)
        logger.info(f"User {g.user_id} logged out")
        response = jsonify({"message": "Logged out"})
        response.delete_cookie(cookie_name)
        return response

    @app.route('/addTask', methods=['POST'])
    @login_required
    def add_task():
        data = read_json()
        task = tasks.add_task(g.user_id, data.get('task'))
        return jsonify({"message": "Task added", "task": task.model_dump()})

    @app.route('/completeTask', methods=['POST'])
    @login_required
    def complete_task():
        data = read_json()
        task_id = data.get('taskId')
        if not task_id:
            raise ValidationError("Task ID required")
        tasks.complete_task(g.user_id, task_id)
        return jsonify({"message": "Task marked as complete"})

    @app.route('/deleteTask', methods=['POST'])
    @login_required
    def delete_task():
        data = read_json()
        task_id = data.get('taskId')
        if not task_id:
            raise ValidationError("Task ID required")
        tasks.delete_task(g.user_id, task_id)
        return jsonify({"message": "Task deleted"})

    @app.route('/editTask', methods=['POST'])
    @login_required
    def edit_task():
        data = read_json()
        task_id = data.get('taskId')
        new_text = data.get('newText')
        if not task_id or not new_text:
            raise ValidationError("Task ID and new text required")
        tasks.edit_task(g.user_id, task_id, new_text)
        return jsonify({"message": "Task updated"})

    @app.route('/getTasks', methods=['GET'])
    @login_required
    def get_tasks():
        return jsonify({
            "tasks": [task.model_dump() for task in tasks.list_today(g.user_id)]
        })

    @app.route('/getAnalysis', methods=['GET'])
    @login_required
    def get_analysis():
        return jsonify({
            "analysis": [day.model_dump() for day in analysis.get_analysis(g.user_id)]
        })

    return app


if __name__ == '__main__':
    app = create_app()
    try:
        app.run(host=app.config['HOST'], port=app.config['PORT'], debug=app.config['DEBUG'])
    finally:
        app.extensions['tasktracker']['sessions'].clear()
