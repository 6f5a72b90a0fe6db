"""Per content type owner and scheduling settings."""

from src.modules.model_config.models import CONFIGURABLE_MODELS, ModelConfig
from src.modules.model_config.service import ModelConfigService

__all__ = [
    "CONFIGURABLE_MODELS",
    "ModelConfig",
    "ModelConfigService",
]
