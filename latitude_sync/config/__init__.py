from .loader import load_config
from .models import (
    AppConfig,
    DeployConfig,
    LatitudeConfig,
    ValidationConfig,
)

__all__ = [
    "AppConfig",
    "DeployConfig",
    "LatitudeConfig",
    "ValidationConfig",
    "load_config",
]
