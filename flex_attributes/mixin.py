"""
Declarative mixin giving a model flex attributes.

Flex attributes are stored as name/value rows in a companion table but are
read and written like ordinary attributes::

    class User(FlexAttributesMixin, Base):
        __tablename__ = "users"
        __flex_options__ = {}

        id = Column(Integer, primary_key=True)
        login = Column(String(50))

    eric = session.query(User).filter_by(login="eric").one()
    print(eric.aim)                 # None until stored
    eric.phone = "555-123-4567"     # buffered
    session.commit()                # companion rows rebuilt here

Flex attributes are value objects: each flush that follows a flex write
deletes the owner's stored set and inserts the buffered writes, so write
every attribute that should persist.

Restricting which names are flex attributes, from weakest to strongest:

* override ``flex_attributes()`` to return the allowed names;
* pass ``fields=[...]``, which wins over ``flex_attributes()``;
* override ``is_flex_attribute(name)``, which replaces both.

Anything defined on the class (columns, relationships, methods,
properties) is never a flex attribute, and neither is any name starting
with an underscore.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .classifier import AttributeKind, allowed_by_options, classify, defined_on_class, is_flex_eligible
from .declaration import enable_flex_attributes
from .options import FlexOptions
from .registry import FlexBinding, registry
from .store import AttributeStore, flex_state


class FlexAttributesMixin:
    """Adds flex attributes to a mapped class.

    Set ``__flex_options__`` in the class body (``{}`` for the defaults) or
    call :meth:`has_flex_attributes` after the class is defined.
    """

    __flex_options__ = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        options = cls.__dict__.get("__flex_options__")
        if options is not None:
            enable_flex_attributes(cls, **options)

    def __init__(self, **kwargs: Any) -> None:
        flex = {
            key: kwargs.pop(key)
            for key in list(kwargs)
            if not defined_on_class(type(self), key) and is_flex_eligible(type(self), key)
        }
        super().__init__(**kwargs)
        for key, value in flex.items():
            setattr(self, key, value)

    # Configuration

    @classmethod
    def has_flex_attributes(cls, **options: Any) -> FlexBinding:
        """Enable flex attributes; see :func:`enable_flex_attributes`."""
        return enable_flex_attributes(cls, **options)

    @classmethod
    def is_flex_attribute(cls, name: str) -> bool:
        """Whether ``name`` may be stored as a flex attribute.

        Override for algorithmic rules; ``fields`` and ``flex_attributes()``
        are then ignored unless the override consults them.
        """
        return allowed_by_options(cls, str(name))

    @classmethod
    def flex_attributes(cls) -> Optional[Iterable[Any]]:
        """Names of valid flex attributes, or None to allow any name.

        Return an empty list to allow none.
        """
        return None

    @property
    def flex_options(self) -> FlexOptions:
        return registry.get(type(self)).options

    # Per-instance operations

    def classify_attribute(self, name: str) -> AttributeKind:
        if name in self.__dict__:
            return AttributeKind.NATIVE
        return classify(self, name)

    def read_attribute(self, name: str) -> Any:
        return registry.get(type(self)).layer.read_attribute(self, name)

    def write_attribute(self, name: str, value: Any) -> Any:
        return registry.get(type(self)).layer.write_attribute(self, name, value)

    def write_extended_attributes(self, attrs: Mapping[str, Any]) -> "FlexAttributesMixin":
        """Mass-assign flex attributes, silently skipping every other name."""
        for key, value in attrs.items():
            if is_flex_eligible(self, key):
                setattr(self, str(key), value)
        return self

    def purge_old_attributes(self) -> None:
        """Delete all stored flex attributes on the next flush."""
        AttributeStore(self).request_purge()

    @property
    def pending_flex_attributes(self) -> Tuple[Tuple[str, Any], ...]:
        return tuple(flex_state(self).pending)

    def flex_attributes_dict(self) -> Dict[str, Any]:
        """Stored flex attributes of the current scope merged with pending writes."""
        return AttributeStore(self).as_dict()

    # Attribute protocol

    def __getattr__(self, name: str) -> Any:
        # Only reached once normal lookup has failed
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        binding = registry.lookup(type(self))
        if binding is None:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        return binding.layer.resolve_missing(self, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or name in self.__dict__ or defined_on_class(type(self), name):
            super().__setattr__(name, value)
            return
        binding = registry.lookup(type(self))
        if binding is None:
            super().__setattr__(name, value)
            return
        binding.layer.resolve_missing(self, name, assign=True, value=value)
