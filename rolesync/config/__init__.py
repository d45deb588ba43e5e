"""Configuration module for rolesync."""
from .settings import RoleSyncConfig, configure_logging, load_settings

__all__ = ["RoleSyncConfig", "configure_logging", "load_settings"]
