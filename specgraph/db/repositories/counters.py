from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from typing import List

from specgraph.db.models import SeqCounter
from specgraph.domain.entities import CounterUsage
from specgraph.domain.errors import CounterConflict

# SQLSTATE serialization_failure / deadlock_detected
RETRYABLE_SQLSTATES = ("40001", "40P01")


def is_retryable(exc: DBAPIError) -> bool:
    """True for write conflicts that a fresh transaction may resolve."""
    pgcode = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if pgcode in RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(exc.orig).lower()


class CounterRepository:
    """Repository for per-scope sequence counters."""

    def __init__(self, session_factory: sessionmaker, isolation_level: str | None = None):
        """
        Args:
            session_factory: Factory for short-lived sessions; every increment
                runs in its own transaction so it never commits caller state
            isolation_level: Transaction isolation for increments (optional)
        """
        self.session_factory = session_factory
        self.isolation_level = isolation_level

    def increment_or_create(self, project_id: str, scope_type: str,
                            scope_ref1: str = "", scope_ref2: str = "") -> int:
        """
        Atomically take the next number for a scope key.

        The increment is a single UPDATE on the counter row, so the row is
        write-locked before it is read back; a missing row is inserted with
        next_number=2 and a concurrent insert of the same key fails on the
        unique constraint.

        Returns:
            The allocated number

        Raises:
            CounterConflict: On a uniqueness violation or serialization failure
        """
        key = (
            SeqCounter.project_id == project_id,
            SeqCounter.scope_type == scope_type,
            SeqCounter.scope_ref1 == scope_ref1,
            SeqCounter.scope_ref2 == scope_ref2,
        )
        try:
            with self.session_factory() as session:
                with session.begin():
                    if self.isolation_level:
                        session.connection(execution_options={"isolation_level": self.isolation_level})

                    result = session.execute(
                        update(SeqCounter)
                        .where(*key)
                        .values(next_number=SeqCounter.next_number + 1)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount:
                        next_number = session.execute(
                            select(SeqCounter.next_number).where(*key)
                        ).scalar_one()
                        return int(next_number) - 1

                    session.add(SeqCounter(
                        project_id=project_id,
                        scope_type=scope_type,
                        scope_ref1=scope_ref1,
                        scope_ref2=scope_ref2,
                        next_number=2,
                    ))
                    session.flush()
                    return 1
        except IntegrityError as exc:
            raise CounterConflict(f"Counter {scope_type} created concurrently") from exc
        except DBAPIError as exc:
            if is_retryable(exc):
                raise CounterConflict(f"Counter {scope_type} update conflicted") from exc
            raise

    def list_counters(self, project_id: str) -> List[CounterUsage]:
        """
        Get all counters of a project.

        Args:
            project_id: Project ID

        Returns:
            Counters ordered by scope type and first reference
        """
        with self.session_factory() as session:
            rows = session.execute(
                select(SeqCounter)
                .where(SeqCounter.project_id == project_id)
                .order_by(SeqCounter.scope_type, SeqCounter.scope_ref1)
            ).scalars().all()
            return [
                CounterUsage(
                    scope_type=row.scope_type,
                    scope_ref1=row.scope_ref1,
                    scope_ref2=row.scope_ref2,
                    next_number=int(row.next_number),
                )
                for row in rows
            ]

    @classmethod
    def for_session(cls, db: Session, isolation_level: str | None = None) -> "CounterRepository":
        """Build a repository whose transactions run beside an existing session."""
        return cls(sessionmaker(bind=db.get_bind()), isolation_level)
