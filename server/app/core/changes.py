"""In-process change feed over the store.

Writers never talk to subscribers directly: the ORM session collects the
rows touched by each flush and hands them to subscribers only once the
surrounding transaction has committed. Rolled back work is discarded.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Literal

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

TRACKED_COLLECTIONS = frozenset({"members", "attendance", "dues", "activities"})
ALL_COLLECTIONS = "*"
_PENDING_KEY = "pending_changes"

ChangeOp = Literal["insert", "update", "delete"]


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    op: ChangeOp
    record_id: int | None


Subscriber = Callable[[ChangeEvent], None]

_subscribers: dict[str, list[Subscriber]] = defaultdict(list)
_lock = threading.Lock()


def subscribe(collection: str, callback: Subscriber) -> Callable[[], None]:
    """Register ``callback`` for committed changes; returns the unsubscribe handle."""

    if collection != ALL_COLLECTIONS and collection not in TRACKED_COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    with _lock:
        _subscribers[collection].append(callback)

    def unsubscribe() -> None:
        with _lock:
            try:
                _subscribers[collection].remove(callback)
            except ValueError:
                pass

    return unsubscribe


def clear_subscribers() -> None:
    with _lock:
        _subscribers.clear()


def publish(events: list[ChangeEvent]) -> None:
    for change in events:
        with _lock:
            targets = list(_subscribers.get(change.collection, ())) + list(_subscribers.get(ALL_COLLECTIONS, ()))
        for callback in targets:
            try:
                callback(change)
            except Exception:
                logger.exception(
                    "change_subscriber_failed",
                    extra={"collection": change.collection, "op": change.op, "record_id": change.record_id},
                )


def _collection_of(instance) -> str | None:
    name = getattr(instance, "__tablename__", None)
    return name if name in TRACKED_COLLECTIONS else None


def _queue(session: Session, collection: str, op: ChangeOp, record_id: int | None) -> None:
    pending: list[ChangeEvent] = session.info.setdefault(_PENDING_KEY, [])
    change = ChangeEvent(collection=collection, op=op, record_id=record_id)
    if change not in pending:
        pending.append(change)


@event.listens_for(Session, "after_flush")
def _collect_changes(session: Session, flush_context) -> None:
    for instance in session.new:
        collection = _collection_of(instance)
        if collection:
            _queue(session, collection, "insert", getattr(instance, "id", None))
    for instance in session.dirty:
        collection = _collection_of(instance)
        if collection and session.is_modified(instance, include_collections=False):
            _queue(session, collection, "update", getattr(instance, "id", None))
    for instance in session.deleted:
        collection = _collection_of(instance)
        if collection:
            _queue(session, collection, "delete", getattr(instance, "id", None))


@event.listens_for(Session, "after_commit")
def _deliver_changes(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, None)
    if pending:
        publish(pending)


@event.listens_for(Session, "after_rollback")
def _discard_changes(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
