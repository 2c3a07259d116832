import threading
from contextlib import contextmanager
from typing import Dict

_room_locks: Dict[int, threading.Lock] = {}
_registry_lock = threading.Lock()


@contextmanager
def room_lock(room_id: int):
    """
    Serialise check-then-write sequences on one room within this process.
    Callers pass the id of a room already loaded from the database.
    Deployments running several worker processes need a database-level
    exclusion constraint on top of this.
    """
    with _registry_lock:
        lock = _room_locks.setdefault(room_id, threading.Lock())
    with lock:
        yield
