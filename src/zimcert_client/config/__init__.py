"""Client configuration."""

from .settings import ClientSettings, load_settings

__all__ = ["ClientSettings", "load_settings"]
