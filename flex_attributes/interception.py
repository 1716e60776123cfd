"""
Attribute access routing between native storage and the flex store.

The layer is composed once, when the first model enables flex attributes,
around the native read and write primitives. It never changes how the
mapping engine itself dispatches attributes: models reach it through the
explicit ``__getattr__`` / ``__setattr__`` resolvers of
:class:`flex_attributes.mixin.FlexAttributesMixin`.
"""

from __future__ import annotations

from typing import Any, Callable

from .classifier import is_flex_eligible, is_native_attribute
from .exceptions import UnknownAttributeError
from .store import AttributeStore

NativeRead = Callable[[Any, str], Any]
NativeWrite = Callable[[Any, str, Any], None]


class InterceptionLayer:
    """Routes reads and writes, native members first, flex attributes second."""

    def __init__(
        self,
        native_read: NativeRead = object.__getattribute__,
        native_write: NativeWrite = object.__setattr__,
    ):
        self.native_read = native_read
        self.native_write = native_write

    def store(self, instance: Any) -> AttributeStore:
        return AttributeStore(instance)

    def read(self, instance: Any, name: str) -> Any:
        """Read ``name`` from the flex store if it is a flex attribute, else natively."""
        name = str(name)
        if is_flex_eligible(instance, name):
            return self.store(instance).get(name)
        return self.native_read(instance, name)

    def write(self, instance: Any, name: str, value: Any) -> Any:
        """Buffer ``value`` if ``name`` is a flex attribute, else write natively."""
        name = str(name)
        if is_flex_eligible(instance, name):
            return self.store(instance).stage(name, value)
        self.native_write(instance, name, value)
        return value

    def resolve_missing(self, instance: Any, name: str, assign: bool = False, value: Any = None) -> Any:
        """Second resolution stage, used once native lookup has failed.

        Flex attributes are read or written; any other name raises
        :class:`UnknownAttributeError`, an ``AttributeError``.
        """
        if is_flex_eligible(instance, name):
            if assign:
                return self.write(instance, name, value)
            return self.read(instance, name)
        raise UnknownAttributeError(type(instance).__name__, name)

    def read_attribute(self, instance: Any, name: str) -> Any:
        """Explicit read: native members, then flex attributes, else unknown."""
        name = str(name)
        if self._is_native_member(instance, name):
            return self.native_read(instance, name)
        return self.resolve_missing(instance, name)

    def write_attribute(self, instance: Any, name: str, value: Any) -> Any:
        """Explicit write: native members, then flex attributes, else unknown."""
        name = str(name)
        if self._is_native_member(instance, name):
            self.native_write(instance, name, value)
            return value
        return self.resolve_missing(instance, name, assign=True, value=value)

    @staticmethod
    def _is_native_member(instance: Any, name: str) -> bool:
        return name in instance.__dict__ or is_native_attribute(type(instance), name)
