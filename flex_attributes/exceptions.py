"""
Exceptions raised by flex attributes.

Every error carries a stable ``code`` for programmatic handling and a
``to_dict()`` for serialization. Database errors raised while the companion
rows are rebuilt are not wrapped; they propagate from the flush unchanged.
"""

from typing import Any, Dict, Optional


class FlexAttributeError(Exception):
    """Base class for flex attribute errors."""

    code = "FLEX_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
        }


class UnknownAttributeError(FlexAttributeError, AttributeError):
    """Raised when a name is neither a native member nor a valid flex attribute.

    Subclasses AttributeError so ``getattr(obj, name, default)`` and
    ``hasattr`` behave as they would on a model without flex attributes.
    """

    code = "UNKNOWN_ATTRIBUTE"

    def __init__(self, model_name: str, attr_name: str):
        self.model_name = model_name
        self.attr_name = attr_name
        super().__init__(f"'{model_name}' object has no attribute '{attr_name}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "model": self.model_name,
            "attribute": self.attr_name,
            "message": self.message,
        }


class FlexConfigurationError(FlexAttributeError):
    """Raised when flex attributes cannot be set up for a model."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, model_name: Optional[str] = None):
        self.model_name = model_name
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "model": self.model_name,
            "message": self.message,
        }


class CompanionClassNotFound(FlexConfigurationError, LookupError):
    """Raised when no mapped class carries the companion class name.

    This is the one configuration failure that is recovered from: the
    companion class is defined dynamically instead.
    """

    code = "COMPANION_NOT_FOUND"

    def __init__(self, class_name: str):
        self.class_name = class_name
        super().__init__(f"No mapped class named '{class_name}'")


class FlexPersistenceError(FlexAttributeError):
    """Raised when companion rows cannot be rebuilt for an owner."""

    code = "PERSISTENCE_ERROR"
