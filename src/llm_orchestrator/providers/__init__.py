"""Provider adapters.

Concrete adapters are imported lazily through the factory so that only the
SDKs of configured backends are loaded.
"""

from .base import BaseProvider, with_retry
from .factory import create_provider, get_default_model, get_supported_providers
from .pricing import MODEL_PRICING, ModelPrice, get_price
from .streaming import ToolCallAccumulator

__all__ = [
    "BaseProvider",
    "with_retry",
    "create_provider",
    "get_default_model",
    "get_supported_providers",
    "MODEL_PRICING",
    "ModelPrice",
    "get_price",
    "ToolCallAccumulator",
]
