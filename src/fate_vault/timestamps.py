"""Stamp ``createdAt``/``updatedAt`` on stored documents from change events.

This is the database-side hook run for every insert, update and replace on
the main database. The collection to write to is passed in by the caller (any
object with a pymongo-style ``update_one(filter, update)``), so the hook holds
no connection state of its own.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

LOG = logging.getLogger(__name__)


def stamp_timestamps(change_event: Mapping[str, Any], collection, now: datetime | None = None):
    """Apply timestamps for one change event.

    Returns the ``$set`` payload written, or None when nothing was written.
    """
    now = now or datetime.now(timezone.utc)
    operation = change_event.get("operationType")
    fields = {}

    if operation == "insert":
        document = change_event.get("fullDocument") or {}
        if not document.get("createdAt"):
            fields["createdAt"] = now
        if not document.get("updatedAt"):
            fields["updatedAt"] = now
        doc_id = document.get("_id")

    elif operation == "update":
        description = change_event.get("updateDescription") or {}
        updated = description.get("updatedFields") or {}
        # an update that sets updatedAt itself must not retrigger a write
        if "updatedAt" not in updated:
            fields["updatedAt"] = now
        doc_id = (change_event.get("documentKey") or {}).get("_id")

    elif operation == "replace":
        document = change_event.get("fullDocument")
        if not document:
            return None
        if not document.get("createdAt"):
            fields["createdAt"] = now
        fields["updatedAt"] = now
        doc_id = document.get("_id")

    else:
        return None

    if not fields:
        return None
    LOG.debug("Stamping %s on %s (%s)", sorted(fields), doc_id, operation)
    collection.update_one({"_id": doc_id}, {"$set": fields})
    return fields


class TimestampHook:
    """Callable hook resolving the target collection from each event.

    ``resolve_collection`` receives the collection name from the event's
    ``ns.coll`` and returns the collection object to update.
    """

    def __init__(self, resolve_collection: Callable[[str], Any], clock: Callable[[], datetime] | None = None):
        self.resolve_collection = resolve_collection
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def __call__(self, change_event: Mapping[str, Any]):
        name = (change_event.get("ns") or {}).get("coll")
        if not name:
            LOG.warning("Change event without a collection name: %s", change_event.get("operationType"))
            return None
        return stamp_timestamps(change_event, self.resolve_collection(name), now=self.clock())
