"""
Study Session Lifecycle Service

Owns the lifecycle of timed study sessions and the propagation of completed
study time into the owning task.

Responsibilities:
- Start sessions, enforcing at most one active session per user
- Complete or cancel the active session using the server clock
- Credit completed minutes to Task.actual_hours
- List a user's sessions with their tasks resolved

Concurrency:
    start_session holds a per-user lock around its check-then-insert, and the
    study_sessions table carries a partial unique index on user_id where
    end_time IS NULL, so concurrent starts cannot both succeed. Task credit
    is an in-database increment serialized per task.

Ordering:
    complete_session commits the finalized session before touching the task.
    A crash in between leaves a completed session with a stale task total,
    never a task credit without its session.

Usage:
    from study_tracker.services.study import SessionService

    service = SessionService(db)
    started = await service.start_session(user_id, task_id)
    result = await service.complete_session(
        user_id, started.id, pomodoros_completed=2, was_completed=True
    )
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from study_tracker.db.models import StudySession, Task, ensure_utc, utc_now
from study_tracker.middleware.error_handling import (
    ClockError,
    ConflictError,
    NotFoundError,
    SessionAlreadyEndedError,
    ValidationError,
)
from study_tracker.models.study import (
    SessionCompleteResponse,
    SessionResponse,
    SessionStartResponse,
    TaskSummary,
)
from study_tracker.services.study.locking import KeyedLocks

logger = logging.getLogger(__name__)

# Shared by every service instance in the process; services are created per
# request but the invariants they guard are per user / per task.
_user_locks = KeyedLocks()
_task_locks = KeyedLocks()


def calculate_total_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Whole minutes elapsed between two timestamps, rounded down.

    Args:
        start_time: Session start (server clock).
        end_time: Session end (server clock).

    Returns:
        floor((end_time - start_time) / 60s).

    Raises:
        ClockError: If end_time is before start_time.
    """
    elapsed = (ensure_utc(end_time) - ensure_utc(start_time)).total_seconds()
    if elapsed < 0:
        raise ClockError(
            "Session end time is before its start time; the stored start time "
            "is ahead of the server clock",
            details={
                "start_time": ensure_utc(start_time).isoformat(),
                "end_time": ensure_utc(end_time).isoformat(),
            },
        )
    return int(elapsed // 60)


def session_to_response(
    session: StudySession, task: Optional[Task] = None
) -> SessionResponse:
    """Convert a session row (and its resolved task) to an API model."""
    return SessionResponse(
        id=session.id,
        user_id=session.user_id,
        task_id=session.task_id,
        start_time=ensure_utc(session.start_time),
        end_time=ensure_utc(session.end_time),
        total_minutes=session.total_minutes or 0,
        pomodoros_completed=session.pomodoros_completed or 0,
        was_completed=bool(session.was_completed),
        notes=session.notes or "",
        state=session.state,
        created_at=ensure_utc(session.created_at),
        task=TaskSummary.model_validate(task) if task is not None else None,
    )


class SessionService:
    """
    Service for the study session state machine.

    States: ACTIVE (end_time null) → COMPLETED / CANCELLED (terminal).
    There is no pause state; pausing is a client-side timer concern.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the session service.

        Args:
            db: SQLAlchemy async database session.
            clock: Source of the current server time (aware UTC).
        """
        self.db = db
        self.clock = clock

    # =========================================================================
    # Main Entry Points
    # =========================================================================

    async def start_session(self, user_id: str, task_id: str) -> SessionStartResponse:
        """
        Start a new study session for a task.

        Args:
            user_id: Authenticated user.
            task_id: Task the session is recorded against.

        Returns:
            SessionStartResponse with the new session id and start time.

        Raises:
            ValidationError: If task_id is missing.
            NotFoundError: If the task doesn't exist for this user.
            ConflictError: If the user already has an active session.
        """
        if not task_id or not task_id.strip():
            raise ValidationError("task_id is required to start a session")

        task = await self._get_task(user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        async with _user_locks.hold(user_id):
            active = await self._get_active_session(user_id)
            if active is not None:
                logger.warning(
                    f"Rejected session start for user {user_id}: "
                    f"session {active.id} is still active"
                )
                raise ConflictError(
                    "You already have an active session",
                    details={"active_session_id": active.id},
                )

            now = self.clock()
            session = StudySession(
                user_id=user_id,
                task_id=task_id,
                start_time=now,
                end_time=None,
                total_minutes=0,
                pomodoros_completed=0,
                was_completed=False,
                notes="",
                created_at=now,
            )
            self.db.add(session)

            try:
                await self.db.commit()
            except IntegrityError as e:
                # Another process won the race for the active slot
                await self.db.rollback()
                raise ConflictError("You already have an active session") from e

        logger.info(f"Started session {session.id} for user {user_id} on task {task_id}")

        return SessionStartResponse(
            id=session.id,
            task_id=session.task_id,
            start_time=ensure_utc(session.start_time),
        )

    async def complete_session(
        self,
        user_id: str,
        session_id: str,
        pomodoros_completed: int = 0,
        was_completed: bool = True,
        notes: Optional[str] = None,
    ) -> SessionCompleteResponse:
        """
        Finish the active session and credit its time to the task.

        Args:
            user_id: Authenticated user.
            session_id: Session to finish.
            pomodoros_completed: Focus intervals completed in the session.
            was_completed: False if the user stopped early.
            notes: Replaces the session notes when non-empty.

        Returns:
            SessionCompleteResponse with the finalized session. task_updated
            is False (with a warning) if the task no longer exists.

        Raises:
            ValidationError: If pomodoros_completed is negative.
            NotFoundError: If the session doesn't exist for this user.
            SessionAlreadyEndedError: If the session was already completed or
                cancelled.
            ClockError: If the computed duration is negative. The session is
                left active.
        """
        if pomodoros_completed < 0:
            raise ValidationError("pomodoros_completed cannot be negative")

        session = await self._get_session(user_id, session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        if session.end_time is not None:
            raise SessionAlreadyEndedError(f"Session {session_id} has already ended")

        end_time = self.clock()
        total_minutes = calculate_total_minutes(session.start_time, end_time)

        values = {
            "end_time": end_time,
            "total_minutes": total_minutes,
            "pomodoros_completed": pomodoros_completed,
            "was_completed": was_completed,
        }
        if notes:
            values["notes"] = notes

        # Only an active row may be finalized; a concurrent completion that
        # got there first leaves nothing to match.
        result = await self.db.execute(
            update(StudySession)
            .where(
                StudySession.id == session_id,
                StudySession.user_id == user_id,
                StudySession.end_time.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise SessionAlreadyEndedError(f"Session {session_id} has already ended")

        await self.db.commit()
        await self.db.refresh(session)

        logger.info(
            f"Finished session {session_id} for user {user_id}: "
            f"{total_minutes}min, {pomodoros_completed} pomodoros, "
            f"state={session.state.value}"
        )

        # Snapshot before the task update; a rollback there expires the row
        response = session_to_response(session)

        task_updated, warnings = await self._credit_task(
            user_id, session.task_id, total_minutes
        )

        return SessionCompleteResponse(
            **response.model_dump(),
            task_updated=task_updated,
            warnings=warnings,
        )

    async def list_sessions(self, user_id: str) -> list[SessionResponse]:
        """
        List all of a user's sessions, most recently created first.

        Each session is resolved against its task; sessions whose task has
        been deleted carry task=None.
        """
        query = (
            select(StudySession)
            .where(StudySession.user_id == user_id)
            .order_by(StudySession.created_at.desc(), StudySession.start_time.desc())
        )
        result = await self.db.execute(query)
        sessions = list(result.scalars().all())

        tasks = await self._get_tasks_by_id(user_id, {s.task_id for s in sessions})

        return [session_to_response(s, tasks.get(s.task_id)) for s in sessions]

    async def get_active_session(self, user_id: str) -> Optional[SessionResponse]:
        """Return the user's active session, if any, with its task."""
        session = await self._get_active_session(user_id)
        if session is None:
            return None
        task = await self._get_task(user_id, session.task_id)
        return session_to_response(session, task)

    # =========================================================================
    # Task Propagation
    # =========================================================================

    async def _credit_task(
        self, user_id: str, task_id: str, total_minutes: int
    ) -> tuple[bool, list[str]]:
        """
        Add completed minutes to the task's actual hours.

        Runs as a single UPDATE ... SET actual_hours = actual_hours + delta
        so concurrent completions for one task cannot lose an update.

        Returns:
            tuple[bool, list[str]]: Whether the task was updated, and any
            warnings produced.
        """
        hours = total_minutes / 60

        async with _task_locks.hold(task_id):
            result = await self.db.execute(
                update(Task)
                .where(Task.id == task_id, Task.user_id == user_id)
                .values(actual_hours=Task.actual_hours + hours)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                warning = (
                    f"Task {task_id} no longer exists; "
                    f"{total_minutes} minutes were not added to its actual hours"
                )
                logger.warning(warning)
                return False, [warning]

            await self.db.commit()

        logger.debug(f"Credited {hours:.2f}h to task {task_id}")
        return True, []

    # =========================================================================
    # Queries
    # =========================================================================

    async def _get_session(self, user_id: str, session_id: str) -> Optional[StudySession]:
        query = select(StudySession).where(
            StudySession.id == session_id,
            StudySession.user_id == user_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_active_session(self, user_id: str) -> Optional[StudySession]:
        query = select(StudySession).where(
            StudySession.user_id == user_id,
            StudySession.end_time.is_(None),
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _get_task(self, user_id: str, task_id: str) -> Optional[Task]:
        query = select(Task).where(Task.id == task_id, Task.user_id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_tasks_by_id(
        self, user_id: str, task_ids: set[str]
    ) -> dict[str, Task]:
        if not task_ids:
            return {}
        query = select(Task).where(Task.user_id == user_id, Task.id.in_(task_ids))
        result = await self.db.execute(query)
        return {task.id: task for task in result.scalars().all()}
