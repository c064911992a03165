"""
Converter exceptions.

Only invariant violations are raised out of a conversion. Anything the
converter can degrade gracefully (unsupported constructs, syntax errors in
the template) is reported through diagnostic comments and the collected
parse errors on the result instead.
"""

from typing import Any, Dict, Optional


class ConversionError(Exception):
    """Base exception for fatal conversion errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error payload for structured logs and reports"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvariantViolationError(ConversionError):
    """Raised when a nesting counter or the block stack becomes inconsistent"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message=message, details=details)


class CultureAlreadyBoundError(ConversionError):
    """Raised when a template binds a second culture"""

    def __init__(self, bound: str, requested: str):
        super().__init__(
            message="Only one culture is allowed per template",
            details={"bound": bound, "requested": requested},
        )


class UnsupportedIndexError(ConversionError):
    """Raised for element access with an index other than zero"""

    def __init__(self, source: str, index: str):
        super().__init__(
            message=f"Only index 0 can be expressed in Liquid, got '{source}'",
            details={"source": source, "index": index},
        )


class IncompleteMemberError(ConversionError):
    """Raised when an incomplete member carries no identifier"""

    def __init__(self, source: str):
        super().__init__(
            message=f"Incomplete member without identifier: '{source}'",
            details={"source": source},
        )
