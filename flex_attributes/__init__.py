"""
Flex Attributes

Store sparsely populated model attributes as rows of a companion key/value
table while reading and writing them like ordinary attributes.
"""

import importlib.metadata

__author__ = "Flex Attributes Developers"
__version__ = importlib.metadata.version("flex-attributes")

from .classifier import AttributeKind, classify, is_flex_eligible
from .declaration import enable_flex_attributes
from .exceptions import (
    CompanionClassNotFound,
    FlexAttributeError,
    FlexConfigurationError,
    FlexPersistenceError,
    UnknownAttributeError,
)
from .interception import InterceptionLayer
from .mixin import FlexAttributesMixin
from .options import FlexOptions
from .registry import FlexBinding, registry
from .store import AttributeStore

__all__ = [
    "AttributeKind",
    "AttributeStore",
    "CompanionClassNotFound",
    "FlexAttributeError",
    "FlexAttributesMixin",
    "FlexBinding",
    "FlexConfigurationError",
    "FlexOptions",
    "FlexPersistenceError",
    "InterceptionLayer",
    "UnknownAttributeError",
    "classify",
    "enable_flex_attributes",
    "is_flex_eligible",
    "registry",
]
