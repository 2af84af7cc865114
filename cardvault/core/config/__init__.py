from .settings import Settings, create_settings

__all__ = ["Settings", "create_settings"]
