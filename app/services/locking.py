import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Professional, User


def is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


_local_locks = KeyedLocks()


def _ordered_ids(ids: Iterable[int | None]) -> list[int]:
    return sorted({value for value in ids if value is not None})


@contextmanager
def hold_booking_resources(
    db: Session,
    professional_ids: Iterable[int | None] = (),
    user_ids: Iterable[int | None] = (),
) -> Iterator[None]:
    professionals = _ordered_ids(professional_ids)
    users = _ordered_ids(user_ids)

    if is_postgresql_session(db):
        if professionals:
            db.execute(
                select(Professional.id)
                .where(Professional.id.in_(professionals))
                .order_by(Professional.id)
                .with_for_update()
            )
        if users:
            db.execute(select(User.id).where(User.id.in_(users)).order_by(User.id).with_for_update())
        yield
        return

    keys = [f"professional:{value}" for value in professionals] + [f"user:{value}" for value in users]
    with ExitStack() as stack:
        for key in keys:
            stack.enter_context(_local_locks.get(key))
        yield
