"""
Model-definition time setup of flex attributes.

``enable_flex_attributes`` resolves or defines the companion class, links it
to the model with a cascading one-to-many relationship and registers the
model. The first call in the process also composes the interception layer
and installs the ``before_flush`` hook that rebuilds companion rows.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import Column, ForeignKey, String, event, inspect
from sqlalchemy.orm import Mapper, Session, relationship, synonym
from sqlalchemy.orm import registry as orm_registry

from .exceptions import CompanionClassNotFound, FlexConfigurationError
from .interception import InterceptionLayer
from .options import FlexOptions, build_options
from .registry import FlexBinding, registry
from .store import rebuild_pending_flex_attributes

logger = logging.getLogger(__name__)

_layer: Optional[InterceptionLayer] = None


def install_interception() -> InterceptionLayer:
    """Compose the interception layer and install the flush hook, once per process."""
    global _layer
    if _layer is not None:
        return _layer

    _layer = InterceptionLayer()
    if not event.contains(Session, "before_flush", rebuild_pending_flex_attributes):
        event.listen(Session, "before_flush", rebuild_pending_flex_attributes)
    logger.debug("Installed flex attribute interception layer")
    return _layer


def resolve_companion(mapper_registry: orm_registry, class_name: str) -> type:
    """Find the mapped class named ``class_name`` in a declarative registry.

    Raises:
        CompanionClassNotFound: no mapped class has that name
        FlexConfigurationError: more than one mapped class has that name
    """
    matches = [m.class_ for m in mapper_registry.mappers if m.class_.__name__ == class_name]
    if not matches:
        raise CompanionClassNotFound(class_name)
    if len(matches) > 1:
        modules = ", ".join(sorted(f"{c.__module__}.{c.__name__}" for c in matches))
        raise FlexConfigurationError(f"Companion class name '{class_name}' is ambiguous: {modules}")
    return matches[0]


def define_companion(model_class: type, mapper: Mapper, options: FlexOptions) -> type:
    """Dynamically define and map a companion class for ``model_class``.

    The primary key is (foreign key, name[, version]): one row per
    attribute per owner scope.
    """
    owner_pk = _single_primary_key(model_class, mapper)
    namespace: dict = {
        "__tablename__": options.table_name,
        "__module__": model_class.__module__,
        "__init__": mapper.registry.constructor,
        "__flex_dynamic__": True,
        options.foreign_key: Column(
            owner_pk.type,
            ForeignKey(owner_pk, ondelete="CASCADE"),
            primary_key=True,
        ),
        options.name_field: Column(String(255), primary_key=True),
        options.value_field: Column(options.value_type, nullable=True),
    }
    if options.versioned:
        version_type = _version_type(model_class, mapper, options)
        namespace[options.version_column] = Column(version_type, primary_key=True)

    companion = type(options.class_name, (), namespace)
    mapper.registry.map_declaratively(companion)
    logger.info(f"Defined companion class {options.class_name} ({options.table_name}) for {model_class.__name__}")
    return companion


def enable_flex_attributes(model_class: type, **options: Any) -> FlexBinding:
    """Enable flex attributes on a mapped model class.

    A model that already has flex attributes (directly or through a parent
    class) is left unchanged.
    """
    from .mixin import FlexAttributesMixin

    existing = registry.lookup(model_class)
    if existing is not None:
        logger.debug(f"Flex attributes already enabled for {model_class.__name__}")
        return existing

    model_name = model_class.__name__
    if not issubclass(model_class, FlexAttributesMixin):
        raise FlexConfigurationError(
            f"{model_name} must inherit FlexAttributesMixin to use flex attributes",
            model_name=model_name,
        )
    mapper = inspect(model_class, raiseerr=False)
    if mapper is None:
        raise FlexConfigurationError(f"{model_name} is not a mapped class", model_name=model_name)

    flex_options = build_options(model_class, **options)

    companion = flex_options.companion_class
    if companion is None:
        try:
            companion = resolve_companion(mapper.registry, flex_options.class_name)
        except CompanionClassNotFound:
            companion = define_companion(model_class, mapper, flex_options)

    _validate_companion(model_class, companion, flex_options)
    _link(model_class, mapper, companion, flex_options)

    binding = FlexBinding(
        model_class=model_class,
        options=flex_options,
        companion=companion,
        layer=install_interception(),
    )
    registry.register(binding)
    logger.info(
        f"Enabled flex attributes for {model_name} "
        f"(companion={flex_options.class_name}, versioned={flex_options.versioned})"
    )
    return binding


def _single_primary_key(model_class: type, mapper: Mapper) -> Column:
    if len(mapper.primary_key) != 1:
        raise FlexConfigurationError(
            f"{model_class.__name__} has a composite primary key; flex attributes need a single column key",
            model_name=model_class.__name__,
        )
    return mapper.primary_key[0]


def _version_type(model_class: type, mapper: Mapper, options: FlexOptions) -> Any:
    if options.version_column not in mapper.columns:
        raise FlexConfigurationError(
            f"{model_class.__name__} is versioned but has no '{options.version_column}' column",
            model_name=model_class.__name__,
        )
    return mapper.columns[options.version_column].type


def _validate_companion(model_class: type, companion: type, options: FlexOptions) -> None:
    companion_mapper = inspect(companion, raiseerr=False)
    if companion_mapper is None:
        raise FlexConfigurationError(
            f"Companion class {companion.__name__} is not mapped",
            model_name=model_class.__name__,
        )
    required = [options.foreign_key, options.base_foreign_key, options.name_field, options.value_field]
    if options.versioned:
        _version_type(model_class, inspect(model_class), options)
        required.append(options.version_column)
    missing = [key for key in required if key not in companion_mapper.columns]
    if missing:
        raise FlexConfigurationError(
            f"Companion class {companion.__name__} is missing column(s): {', '.join(missing)}",
            model_name=model_class.__name__,
        )


def _link(model_class: type, mapper: Mapper, companion: type, options: FlexOptions) -> None:
    """Wire owner -> companion (cascading collection) and companion -> owner."""
    owner_pk = _single_primary_key(model_class, mapper)
    companion_mapper = inspect(companion)
    fk_column = companion_mapper.columns[options.foreign_key]
    base_fk_column = companion_mapper.columns[options.base_foreign_key]

    if mapper.has_property(options.relationship_name):
        raise FlexConfigurationError(
            f"{model_class.__name__} already has an attribute named '{options.relationship_name}'",
            model_name=model_class.__name__,
        )

    # The inverse pairs with the collection only when both use the same column
    inverse = options.inverse_name
    paired = fk_column is base_fk_column and not companion_mapper.has_property(inverse)

    mapper.add_property(
        options.relationship_name,
        relationship(
            companion,
            primaryjoin=owner_pk == fk_column,
            foreign_keys=[fk_column],
            cascade="all, delete-orphan",
            back_populates=inverse if paired else None,
        ),
    )

    if not companion_mapper.has_property(inverse):
        companion_mapper.add_property(
            inverse,
            relationship(
                model_class,
                primaryjoin=owner_pk == base_fk_column,
                foreign_keys=[base_fk_column],
                back_populates=options.relationship_name if paired else None,
                viewonly=not paired,
            ),
        )
    if not companion_mapper.has_property("base") and "base" not in companion.__dict__:
        companion_mapper.add_property("base", synonym(inverse))
