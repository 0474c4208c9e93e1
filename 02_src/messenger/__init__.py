"""Two-party direct messaging backend."""

from .app import Application, IApplication

__all__ = ["Application", "IApplication"]
