"""
Per-model flex attribute options.

Options are resolved once, when a model enables flex attributes, and are
frozen afterwards: every instance of the model shares them read-only.
Per-instance state (pending writes, purge requests) lives on the instance,
see :mod:`flex_attributes.store`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from sqlalchemy import JSON

from .config import get_settings
from .exceptions import FlexConfigurationError
from .naming import foreign_key, tableize


class FlexOptions(BaseModel):
    """Resolved flex attribute options for one model class."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    class_name: str
    table_name: str
    relationship_name: str
    foreign_key: str
    base_foreign_key: str
    name_field: str = "name"
    value_field: str = "value"
    versioned: bool = False
    version_column: str = "version"
    fields: Optional[Tuple[str, ...]] = None

    # Companion class given directly instead of by name
    companion_class: Optional[type] = None

    # Column type of the value field when the companion class is defined dynamically
    value_type: Any = JSON

    # Lock the owner row (SELECT ... FOR UPDATE) before rebuilding companion rows
    lock_owner: bool = False

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_fields(cls, value: Optional[Iterable[Any]]) -> Optional[Tuple[str, ...]]:
        """Accept any iterable of names; store them as strings."""
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        return tuple(str(field) for field in value)

    @property
    def inverse_name(self) -> str:
        """Name of the many-to-one link from the companion back to its owner."""
        if self.base_foreign_key.endswith("_id"):
            return self.base_foreign_key[: -len("_id")]
        return "owner"


def build_options(model_class: type, **options: Any) -> FlexOptions:
    """Fill in defaults for ``options`` and validate them.

    Defaults follow the model's class name: a ``WikiArticle`` model gets a
    ``WikiArticleAttribute`` companion stored in ``wiki_article_attributes``
    and linked through ``wiki_article_id``.
    """
    settings = get_settings()
    model_name = model_class.__name__
    values: Dict[str, Any] = dict(options)

    class_name = values.pop("class_name", None)
    if isinstance(class_name, type):
        values.setdefault("companion_class", class_name)
        class_name = class_name.__name__
    class_name = class_name or f"{model_name}{settings.companion_suffix}"

    values["class_name"] = class_name
    values.setdefault("table_name", tableize(class_name))
    values.setdefault("relationship_name", tableize(class_name))
    values.setdefault("foreign_key", foreign_key(model_name))
    values.setdefault("base_foreign_key", values["foreign_key"])
    values.setdefault("name_field", settings.default_name_field)
    values.setdefault("value_field", settings.default_value_field)
    values.setdefault("version_column", settings.default_version_column)

    try:
        return FlexOptions(**values)
    except ValidationError as e:
        raise FlexConfigurationError(
            f"Invalid flex attribute options for {model_name}: {e}",
            model_name=model_name,
        ) from e
