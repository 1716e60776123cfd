"""
Attribute classification.

Decides, for an attribute name, whether it is a native member of the model
(a mapped column, relationship or anything else defined on the class), a
flex attribute stored in the companion table, or unknown.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, FrozenSet

from sqlalchemy import inspect

from .registry import registry


class AttributeKind(str, Enum):
    """Where the value of an attribute lives."""

    NATIVE = "native"
    FLEX = "flex"
    UNKNOWN = "unknown"


def _model_class(model: Any) -> type:
    return model if isinstance(model, type) else type(model)


def mapped_attribute_names(model_class: type) -> FrozenSet[str]:
    """Keys of all mapped attributes plus their column names."""
    mapper = inspect(model_class, raiseerr=False)
    if mapper is None:
        return frozenset()
    names = set(mapper.attrs.keys())
    names.update(column.name for column in mapper.columns)
    return frozenset(names)


def defined_on_class(model_class: type, name: str) -> bool:
    """True if ``name`` is defined anywhere in the class hierarchy.

    Reads class dictionaries directly so that descriptors are not invoked.
    """
    return any(name in klass.__dict__ for klass in model_class.__mro__)


def is_native_attribute(model: Any, name: str) -> bool:
    model_class = _model_class(model)
    return name in mapped_attribute_names(model_class) or defined_on_class(model_class, name)


def allowed_by_options(model_class: type, name: str) -> bool:
    """Default flex attribute rule for a model.

    The ``fields`` option wins over the model's ``flex_attributes()``
    enumerator; when neither restricts, every name is allowed.
    """
    options = registry.get(model_class).options
    if options.fields is not None:
        return name in options.fields
    enumerated = model_class.flex_attributes()
    if enumerated is not None:
        return name in {str(field) for field in enumerated}
    return True


def classify(model: Any, name: Any) -> AttributeKind:
    """Classify ``name`` for a model class or instance.

    Native members always win, so a flex attribute never shadows a column.
    Never raises.
    """
    model_class = _model_class(model)
    name = str(name)
    if is_native_attribute(model_class, name):
        return AttributeKind.NATIVE
    if name.startswith("_") or registry.lookup(model_class) is None:
        return AttributeKind.UNKNOWN
    if model_class.is_flex_attribute(name):
        return AttributeKind.FLEX
    return AttributeKind.UNKNOWN


def is_flex_eligible(model: Any, name: Any) -> bool:
    return classify(model, name) is AttributeKind.FLEX
