"""
Flex attribute storage for one owner instance.

Flex attributes are value objects. Writes are buffered on the owner and,
when the owner is flushed, every companion row in the owner's scope
(identity, plus version when versioned) is deleted and the buffered pairs
are inserted again. There is no per-row update path.

Two sessions rebuilding the same owner scope at the same time race; set
``lock_owner=True`` to serialize them on backends with row locks.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, ContextManager, Dict, List, Optional, Tuple

from sqlalchemy import delete, inspect, select
from sqlalchemy.orm import Session, object_session
from sqlalchemy.orm.attributes import flag_dirty, set_committed_value

from .exceptions import FlexPersistenceError
from .registry import FlexBinding, registry

logger = logging.getLogger(__name__)

_STATE_KEY = "_flex_state"

# Returned by AttributeStore.lookup when no value is stored
MISSING = object()


@dataclass
class FlexState:
    """Transient per-instance flex attribute state."""

    pending: List[Tuple[str, Any]] = field(default_factory=list)
    purge: bool = False


def flex_state(instance: Any) -> FlexState:
    """Return the flex state of ``instance``, creating it on first use.

    Instances loaded from the database never run ``__init__``, so the
    state is created lazily in the instance dictionary.
    """
    state = instance.__dict__.get(_STATE_KEY)
    if state is None:
        state = FlexState()
        instance.__dict__[_STATE_KEY] = state
    return state


class AttributeStore:
    """Reads, buffers and rebuilds the flex attributes of one owner."""

    def __init__(self, owner: Any, binding: Optional[FlexBinding] = None):
        self.owner = owner
        self.binding = binding or registry.get(type(owner))
        self.options = self.binding.options
        self.state = flex_state(owner)

    @property
    def related(self) -> List[Any]:
        """The owner's cached companion collection.

        Loading it never autoflushes: a flush would rebuild the companion
        rows and consume the pending writes in the middle of a read.
        """
        with self._no_autoflush():
            return getattr(self.owner, self.options.relationship_name)

    def _no_autoflush(self) -> ContextManager[Any]:
        session = object_session(self.owner)
        if session is None:
            return nullcontext()
        return session.no_autoflush

    # Read path

    def current_version(self) -> Any:
        with self._no_autoflush():
            return getattr(self.owner, self.options.version_column)

    def related_record(self, name: str) -> Optional[Any]:
        """Linear scan of the companion collection for ``name``."""
        name_field = self.options.name_field
        if self.options.versioned:
            version_column = self.options.version_column
            version = self.current_version()
            for record in self.related:
                if getattr(record, name_field) == name and getattr(record, version_column) == version:
                    return record
            return None
        for record in self.related:
            if getattr(record, name_field) == name:
                return record
        return None

    def lookup(self, name: str) -> Any:
        """Value of ``name``, or ``MISSING``.

        Pending writes are consulted first so a value can be read back
        before the owner is flushed.
        """
        for pending_name, value in reversed(self.state.pending):
            if pending_name == name:
                return value
        record = self.related_record(name)
        if record is None:
            return MISSING
        return getattr(record, self.options.value_field)

    def get(self, name: str, default: Any = None) -> Any:
        value = self.lookup(name)
        return default if value is MISSING else value

    def as_dict(self) -> Dict[str, Any]:
        """All flex attributes visible in the owner's current scope."""
        name_field = self.options.name_field
        version = self.current_version() if self.options.versioned else None
        values: Dict[str, Any] = {}
        for record in self.related:
            if self._in_scope(record, version):
                values[getattr(record, name_field)] = getattr(record, self.options.value_field)
        for name, value in self.state.pending:
            values[name] = value
        return values

    # Write path

    def stage(self, name: str, value: Any) -> Any:
        """Buffer a write until the owner is flushed."""
        self.state.pending.append((name, value))
        flag_dirty(self.owner)
        return value

    def request_purge(self) -> None:
        """Delete the stored set on the next flush even without writes."""
        self.state.purge = True
        flag_dirty(self.owner)

    @property
    def has_changes(self) -> bool:
        return bool(self.state.pending) or self.state.purge

    # Persist-time rebuild

    def rebuild(self, session: Session) -> int:
        """Replace the owner's companion rows with the pending writes.

        Returns the number of companion records queued for insert.
        """
        if not self.has_changes:
            return 0

        options = self.options
        version = self._version_for_rebuild() if options.versioned else None
        identity = self._owner_identity()

        if identity is not None and options.lock_owner:
            self._lock_owner(session, identity)
        self._forget_scope(session, version)
        if identity is not None:
            self._delete_scope(session, identity, version)
        self.state.purge = False

        pairs = self._collapsed_pending()
        related = self.related
        for name, value in pairs:
            params = {
                options.name_field: name,
                options.value_field: value,
            }
            if identity is not None:
                params[options.foreign_key] = identity
            if options.versioned:
                params[options.version_column] = version
            related.append(self.binding.companion(**params))
        self.state.pending = []

        logger.debug(
            f"Rebuilt {len(pairs)} flex attribute(s) for "
            f"{type(self.owner).__name__} {identity!r} (version={version!r})"
        )
        return len(pairs)

    def _collapsed_pending(self) -> List[Tuple[str, Any]]:
        """Pending pairs with repeated names reduced to their last value."""
        latest: Dict[str, Any] = {}
        for name, value in self.state.pending:
            latest[name] = value
        return list(latest.items())

    def _owner_identity(self) -> Any:
        mapper = inspect(type(self.owner))
        pk_property = mapper.get_property_by_column(mapper.primary_key[0])
        return getattr(self.owner, pk_property.key)

    def _version_for_rebuild(self) -> Any:
        version = self.current_version()
        if version is not None:
            return version

        # Apply the column's scalar default so rows of a new owner get a version
        column = inspect(type(self.owner)).columns[self.options.version_column]
        default = column.default
        if default is None or not default.is_scalar:
            raise FlexPersistenceError(
                f"{type(self.owner).__name__}.{self.options.version_column} is not set "
                f"and has no scalar default; cannot scope flex attributes"
            )
        setattr(self.owner, self.options.version_column, default.arg)
        return default.arg

    def _in_scope(self, record: Any, version: Any) -> bool:
        if not self.options.versioned:
            return True
        return getattr(record, self.options.version_column) == version

    def _lock_owner(self, session: Session, identity: Any) -> None:
        pk_column = inspect(type(self.owner)).primary_key[0]
        session.execute(select(pk_column).where(pk_column == identity).with_for_update())

    def _delete_scope(self, session: Session, identity: Any, version: Any) -> None:
        """Bulk delete the scope straight from the companion table."""
        companion_mapper = inspect(self.binding.companion)
        table = companion_mapper.local_table
        condition = companion_mapper.columns[self.options.foreign_key] == identity
        if self.options.versioned:
            condition = condition & (companion_mapper.columns[self.options.version_column] == version)
        session.execute(delete(table).where(condition))

    def _forget_scope(self, session: Session, version: Any) -> None:
        """Drop deleted records from the session and the cached collection.

        The collection is replaced without history events so the removed
        records are neither orphan-deleted nor updated by the flush.
        """
        keep = []
        for record in self.related:
            if self._in_scope(record, version):
                if record in session:
                    session.expunge(record)
            else:
                keep.append(record)
        set_committed_value(self.owner, self.options.relationship_name, keep)


def rebuild_pending_flex_attributes(session: Session, flush_context: Any, instances: Any) -> None:
    """``before_flush`` hook: rebuild companion rows of every changed owner."""
    for owner in list(session.new) + list(session.dirty):
        binding = registry.lookup(type(owner))
        if binding is None:
            continue
        store = AttributeStore(owner, binding)
        if store.has_changes:
            store.rebuild(session)
