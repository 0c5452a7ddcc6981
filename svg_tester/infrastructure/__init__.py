"""Infrastructure layer exports."""

from .outline import OutlineTransformer, StrokeOutlineTransformer
from .validator import (
    SubprocessValidationTool,
    ValidationTool,
    ValidatorInvocation,
    ValidatorResult,
)

__all__ = [
    "OutlineTransformer",
    "StrokeOutlineTransformer",
    "SubprocessValidationTool",
    "ValidationTool",
    "ValidatorInvocation",
    "ValidatorResult",
]
