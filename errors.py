class TaskTrackerError(Exception):
    """Base error; carries the HTTP status used when it reaches a route."""

    status_code = 500

    def __init__(self, message="Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


class ValidationError(TaskTrackerError):
    status_code = 400


class ConflictError(TaskTrackerError):
    status_code = 400


class AuthError(TaskTrackerError):
    status_code = 401


class NotFoundError(TaskTrackerError):
    status_code = 404


class UserNotFoundError(NotFoundError):
    pass


class InternalError(TaskTrackerError):
    status_code = 500
