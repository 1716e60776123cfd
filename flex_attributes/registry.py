"""
Process-wide registry of models with flex attributes enabled.

The registry is filled at model-definition time and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, Optional

from .exceptions import FlexConfigurationError
from .options import FlexOptions

if TYPE_CHECKING:
    from .interception import InterceptionLayer


@dataclass(frozen=True)
class FlexBinding:
    """Everything a model needs at runtime to resolve its flex attributes."""

    model_class: type
    options: FlexOptions
    companion: type
    layer: "InterceptionLayer"


class FlexRegistry:
    """Maps model classes to their :class:`FlexBinding`.

    Lookups walk the MRO, so a subclass of a flex-enabled model (single
    table inheritance) shares its parent's binding.
    """

    def __init__(self) -> None:
        self._bindings: Dict[type, FlexBinding] = {}

    def register(self, binding: FlexBinding) -> None:
        if binding.model_class in self._bindings:
            raise FlexConfigurationError(
                f"Flex attributes already enabled for {binding.model_class.__name__}",
                model_name=binding.model_class.__name__,
            )
        self._bindings[binding.model_class] = binding

    def lookup(self, model_class: type) -> Optional[FlexBinding]:
        for klass in model_class.__mro__:
            binding = self._bindings.get(klass)
            if binding is not None:
                return binding
        return None

    def get(self, model_class: type) -> FlexBinding:
        binding = self.lookup(model_class)
        if binding is None:
            raise FlexConfigurationError(
                f"Flex attributes are not enabled for {model_class.__name__}",
                model_name=model_class.__name__,
            )
        return binding

    def __contains__(self, model_class: object) -> bool:
        return isinstance(model_class, type) and self.lookup(model_class) is not None

    def __iter__(self) -> Iterator[FlexBinding]:
        return iter(list(self._bindings.values()))

    def __len__(self) -> int:
        return len(self._bindings)


# Global registry instance
registry = FlexRegistry()
