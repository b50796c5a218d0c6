import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from errors import AuthError, ConflictError, NotFoundError, UserNotFoundError, ValidationError
from models import DayStat, Task, User

logger = logging.getLogger(__name__)

ANALYSIS_DAYS = 7


def utc_now():
    return datetime.now(timezone.utc)


def _is_text(value):
    return isinstance(value, str) and bool(value)


def _same_id(task, task_id):
    # clients may send ids as numbers or strings
    return str(task.id) == str(task_id).strip()


class AccountService:
    def __init__(self, store, sessions, locks):
        self.store = store
        self.sessions = sessions
        self.locks = locks

    def register(self, name, user_id, password, gmail):
        if not all(_is_text(v) for v in (name, user_id, password, gmail)):
            raise ValidationError("All fields are required")
        with self.locks.hold(user_id):
            if self.store.exists(user_id):
                raise ConflictError("User already exists")
            user = User(name=name, user_id=user_id, password=password, gmail=gmail)
            self.store.save(user)
        logger.info(f"Registered user {user_id}")
        return user

    def login(self, user_id, password):
        """Returns a new session token; unknown users and wrong passwords fail identically."""
        if not _is_text(user_id) or not _is_text(password):
            raise ValidationError("UserId and password required")
        try:
            user = self.store.load(user_id)
        except (UserNotFoundError, ValidationError):
            user = None
        if user is None or user.password != password:
            logger.info(f"Failed login for {user_id}")
            raise AuthError("Invalid credentials")
        token = self.sessions.create(user_id)
        logger.info(f"User {user_id} logged in")
        return token

    def logout(self, token):
        self.sessions.destroy(token)


class _DailyService:
    """Shared plumbing for services that bucket tasks by calendar day."""

    def __init__(self, store, locks, tz='UTC', clock=utc_now):
        self.store = store
        self.locks = locks
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self.clock = clock

    def now(self):
        return self.clock().astimezone(self.tz)

    def today(self):
        return self.now().date().isoformat()


class TaskService(_DailyService):
    """
    Task operations on the current day's bucket.

    Tasks from earlier days stay in the user's record but cannot be
    completed, edited or deleted once their day is over.
    """

    def _new_id(self, bucket):
        task_id = int(self.now().timestamp() * 1000)
        if bucket:
            task_id = max(task_id, max(t.id for t in bucket) + 1)
        return task_id

    def _today_bucket(self, user, today):
        bucket = user.tasks.get(today)
        if bucket is None:
            raise NotFoundError("No tasks for today")
        return bucket

    @staticmethod
    def _find(bucket, task_id):
        for task in bucket:
            if _same_id(task, task_id):
                return task
        raise NotFoundError("Task not found")

    def add_task(self, user_id, text) -> Task:
        if not _is_text(text):
            raise ValidationError("Task content required")
        today = self.today()
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
            bucket = user.tasks.setdefault(today, [])
            task = Task(id=self._new_id(bucket), text=text, completed=False, date=today)
            bucket.append(task)
            self.store.save(user)
        logger.debug(f"Added task {task.id} for {user_id}")
        return task

    def complete_task(self, user_id, task_id) -> None:
        today = self.today()
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
            task = self._find(self._today_bucket(user, today), task_id)
            task.completed = True
            self.store.save(user)
        logger.debug(f"Completed task {task_id} for {user_id}")

    def delete_task(self, user_id, task_id) -> None:
        # an unknown id inside an existing bucket is not an error
        today = self.today()
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
            bucket = self._today_bucket(user, today)
            user.tasks[today] = [t for t in bucket if not _same_id(t, task_id)]
            self.store.save(user)
        logger.debug(f"Deleted task {task_id} for {user_id}")

    def edit_task(self, user_id, task_id, new_text) -> None:
        if not _is_text(new_text):
            raise ValidationError("Task ID and new text required")
        today = self.today()
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
            task = self._find(self._today_bucket(user, today), task_id)
            task.text = new_text
            self.store.save(user)
        logger.debug(f"Edited task {task_id} for {user_id}")

    def list_today(self, user_id):
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
        return list(user.tasks.get(self.today(), []))


class AnalysisService(_DailyService):
    def get_analysis(self, user_id):
        """Completion counts for today and the six days before it, newest first."""
        with self.locks.hold(user_id):
            user = self.store.load(user_id)
        today = self.now().date()
        analysis = []
        for offset in range(ANALYSIS_DAYS):
            day = (today - timedelta(days=offset)).isoformat()
            tasks = user.tasks.get(day, [])
            analysis.append(DayStat(
                date=day,
                total=len(tasks),
                completed=sum(1 for t in tasks if t.completed),
                tasks=list(tasks),
            ))
        return analysis
