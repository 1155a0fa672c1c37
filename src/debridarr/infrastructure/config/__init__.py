from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, UserProfileConfig

__all__ = ["AppConfig", "EnvOverrides", "UserProfileConfig", "load_config"]
