import asyncio
import logging
import os
import threading
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL, DB_IO_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "30"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _engine_options() -> dict:
    """Pool options for server databases, thread-safe connect args for SQLite"""
    if IS_SQLITE:
        # SQLite serializes writers itself; wait on its file lock instead of failing fast
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
    }


# One pooled engine for the whole process, shared by every request
try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_options())
    logger.info("✅ Database engine created successfully")
    if not IS_SQLITE:
        logger.info(
            f"📊 Connection pool: size={POOL_SIZE}, max_overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s"
        )
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

# Slow query logging for performance monitoring
if ENABLE_QUERY_LOGGING:

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Dependency returning the process-wide session factory"""
    return SessionLocal


class WorkDeadline:
    """
    Decides the race between a caller giving up and a worker committing.

    Whichever side takes the lock first wins: an expired deadline refuses the
    commit, and a commit already under way makes the caller wait for its outcome.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.expired = False
        self.committing = False

    def begin_commit(self) -> None:
        from .domain.scheduling.exceptions import StorageTimeout

        with self._lock:
            if self.expired:
                raise StorageTimeout("Database call timed out, please retry")
            self.committing = True

    def expire(self) -> bool:
        """Mark the work abandoned; False when a commit has already started"""
        with self._lock:
            if self.committing:
                return False
            self.expired = True
            return True


@event.listens_for(Session, "before_commit")
def refuse_commit_after_deadline(session: Session):
    deadline = session.info.get("deadline")
    if deadline is not None:
        deadline.begin_commit()


def _consume_result(task: asyncio.Future) -> None:
    # The caller may have stopped waiting; keep the worker's outcome out of the loop's error log
    if not task.cancelled():
        task.exception()


async def run_in_session(
    session_factory: sessionmaker,
    work: Callable[[Session], T],
    timeout: Optional[float] = None,
) -> T:
    """
    Run synchronous ORM work in a worker thread with its own session.

    The session is closed when the work returns; committing is the work's job.
    Exceeding the timeout or the database lock timeout raises StorageTimeout.
    A timed-out work is not allowed to commit afterwards, so StorageTimeout always
    means nothing was written and the call can be retried.
    """
    from .domain.scheduling.exceptions import StorageTimeout

    deadline = WorkDeadline()
    limit = timeout or DB_IO_TIMEOUT_SECONDS

    def run_worker():
        with session_factory() as db:
            db.info["deadline"] = deadline
            try:
                return work(db)
            except OperationalError as e:
                db.rollback()
                if "locked" in str(e).lower() or "timeout" in str(e).lower():
                    raise StorageTimeout("Database is busy, please retry") from e
                raise

    task = asyncio.ensure_future(asyncio.to_thread(run_worker))
    task.add_done_callback(_consume_result)

    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=limit)
    except asyncio.TimeoutError as e:
        if not deadline.expire():
            logger.info(f"⏳ Database call passed {limit}s while committing, waiting for it")
            return await task
        logger.warning(f"⏰ Database call exceeded {limit}s")
        raise StorageTimeout("Database call timed out, please retry") from e


def begin_write(db: Session) -> None:
    """
    Open the session's write transaction now.

    On SQLite this takes the database write lock up front (BEGIN IMMEDIATE), so
    concurrent writers queue on the lock instead of failing on lock upgrade.
    Server databases are left to row locks and constraints.
    """
    if not IS_SQLITE:
        return
    dbapi_connection = db.connection().connection.dbapi_connection
    if not dbapi_connection.in_transaction:
        db.execute(text("BEGIN IMMEDIATE"))
