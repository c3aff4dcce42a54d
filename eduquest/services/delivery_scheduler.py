"""
Daily question delivery.

A background job wakes every few minutes and scans every user. A user is
emailed when they have enrollments, an active trial or subscription, no send
recorded for the delivery day, and the current minute falls inside the
delivery window that opens at their preferred time. A window may run past
midnight; the send then counts for the day it opened on. The day is stamped
before the email goes out and restored if the send fails. A tick that misses
the window does not catch up later; the user gets no email that day.
"""
import logging
import random
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler

from eduquest.core.access import has_active_access
from eduquest.core.config import settings
from eduquest.models.student_subject import StudentSubject
from eduquest.models.user import User
from eduquest.schemas.question import Question
from eduquest.services import profile_store
from eduquest.services.question_generator import generate

logger = logging.getLogger(__name__)

JOB_ID = "daily_question_delivery"

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def parse_preferred_time(value: str) -> Tuple[int, int]:
    """Convert "HH:MM AM/PM" to a 24-hour (hour, minute) pair."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid preferred time {value!r}; expected 'HH:MM AM/PM'")

    hour, minute, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid preferred time {value!r}")

    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0
    return hour, minute


def due_date(preferred_time: str, now: datetime, window_minutes: int) -> Optional[date]:
    """
    The delivery day whose window contains the current minute, or None.

    The window opens at the preferred time and stays open `window_minutes`
    past it, running over midnight when needed: with a 5-minute window,
    "11:58 PM" is still due at 00:02 and the delivery belongs to the day
    before.
    """
    hour, minute = parse_preferred_time(preferred_time)
    current = now.replace(second=0, microsecond=0)
    window = timedelta(minutes=max(0, window_minutes))
    for day in (current.date(), current.date() - timedelta(days=1)):
        scheduled = datetime.combine(day, time(hour, minute))
        if scheduled <= current <= scheduled + window:
            return day
    return None


def is_due(preferred_time: str, now: datetime, window_minutes: int) -> bool:
    """True when the current minute lies inside a delivery window. A window of 0 is an exact-minute match."""
    return due_date(preferred_time, now, window_minutes) is not None


def already_sent_today(last_sent: Optional[date], today: date) -> bool:
    return last_sent is not None and last_sent >= today


def build_daily_questions(
    subjects: List[StudentSubject],
    count: int,
    generator: Callable[..., List[Question]] = generate,
    rng: Optional[random.Random] = None,
) -> Dict[str, List[Question]]:
    """
    Generate `count` questions per enrollment, keyed by subject.
    With more than one child the key also names the child ("Ava - math").
    """
    several_children = len({s.child_name for s in subjects}) > 1
    questions_by_subject: Dict[str, List[Question]] = {}
    for s in subjects:
        label = f"{s.child_name} - {s.subject}" if several_children else s.subject
        questions = generator(s.subject, s.grade, count, rng=rng)
        if not questions:
            logger.warning("No questions generated for subject %r (grade %s)", s.subject, s.grade)
            continue
        questions_by_subject[label] = questions
    return questions_by_subject


def recipient_name_for(user: User, subjects: List[StudentSubject]) -> str:
    children = list(dict.fromkeys(s.child_name for s in subjects))
    if len(children) == 1:
        return children[0]
    return user.first_name


@dataclass
class ScanResult:
    checked: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    in_progress: bool = False  # Tick skipped because another scan was running


class DeliveryScheduler:
    """
    Owns the background job that runs the delivery scan.

    `run_once` can also be called directly (tests, admin scripts); overlapping
    calls return immediately instead of scanning twice.
    """

    def __init__(
        self,
        session_factory,
        dispatcher,
        interval_minutes: Optional[int] = None,
        window_minutes: Optional[int] = None,
        questions_per_subject: Optional[int] = None,
        generator: Callable[..., List[Question]] = generate,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.interval_minutes = interval_minutes or settings.SCHEDULER_INTERVAL_MINUTES
        self.window_minutes = settings.DELIVERY_WINDOW_MINUTES if window_minutes is None else window_minutes
        self.questions_per_subject = questions_per_subject or settings.QUESTIONS_PER_SUBJECT
        self.generator = generator
        self.clock = clock

        self._lock = threading.Lock()
        self._scanning = False
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def scanning(self) -> bool:
        return self._scanning

    def start(self) -> None:
        if self.running:
            return
        self._scheduler = BackgroundScheduler()
        # next_run_time=now gives an immediate first scan after startup
        self._scheduler.add_job(
            self.run_once,
            "interval",
            minutes=self.interval_minutes,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )
        self._scheduler.start()
        logger.info(
            "Delivery scheduler started: every %s min, window %s min",
            self.interval_minutes, self.window_minutes,
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Delivery scheduler stopped")

    def run_once(self, now: Optional[datetime] = None) -> ScanResult:
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous delivery scan still running; skipping this tick")
            return ScanResult(in_progress=True)

        self._scanning = True
        result = ScanResult()
        try:
            now = now or self.clock()
            logger.info("Starting delivery scan at %s", now.strftime("%Y-%m-%d %H:%M"))
            db = self.session_factory()
            try:
                users = profile_store.get_all_users(db)
                for user in users:
                    result.checked += 1
                    user_id, email = user.id, user.email
                    try:
                        if self._deliver_to_user(db, user, now):
                            result.sent += 1
                        else:
                            result.skipped += 1
                    except Exception:
                        # One user's failure must not block the rest of the scan
                        db.rollback()
                        result.failed += 1
                        logger.exception("Failed to send daily questions to user %s (%s)", user_id, email)
            finally:
                db.close()
        except Exception:
            logger.exception("Delivery scan aborted")
        finally:
            self._scanning = False
            self._lock.release()

        logger.info(
            "Delivery scan complete: checked=%s sent=%s skipped=%s failed=%s",
            result.checked, result.sent, result.skipped, result.failed,
        )
        return result

    def _deliver_to_user(self, db, user: User, now: datetime) -> bool:
        """Send the day's questions to one user if due. Returns True when an email went out."""
        subjects = profile_store.get_user_subjects(db, user.id)
        if not subjects:
            logger.debug("No subjects for user %s, skipping", user.id)
            return False

        if not has_active_access(user, now.date()):
            logger.debug("User %s has no active trial or subscription, skipping", user.id)
            return False

        preferred = profile_store.preferred_email_time(subjects)
        try:
            delivery_day = due_date(preferred, now, self.window_minutes)
        except ValueError:
            logger.warning("User %s has unparseable preferred time %r, skipping", user.id, preferred)
            return False
        if delivery_day is None:
            return False

        last_sent = profile_store.last_sent_date(subjects)
        if already_sent_today(last_sent, delivery_day):
            logger.debug("Already sent to user %s for %s, skipping", user.id, delivery_day)
            return False

        questions_by_subject = build_daily_questions(subjects, self.questions_per_subject, self.generator)
        if not questions_by_subject:
            logger.warning("No questions generated for user %s, skipping", user.id)
            return False

        # Claim the day before sending; a failed stamp must not lead to a second email
        profile_store.mark_sent(db, user.id, delivery_day)
        try:
            self.dispatcher.send(user.email, recipient_name_for(user, subjects), questions_by_subject)
        except Exception:
            profile_store.mark_sent(db, user.id, last_sent)
            raise
        logger.info("Sent daily questions to user %s for %s (preferred %s)", user.id, delivery_day, preferred)
        return True


def create_delivery_scheduler() -> DeliveryScheduler:
    from eduquest.db.session import SessionLocal
    from eduquest.services.email_dispatcher import EmailDispatcher

    return DeliveryScheduler(session_factory=SessionLocal, dispatcher=EmailDispatcher())
