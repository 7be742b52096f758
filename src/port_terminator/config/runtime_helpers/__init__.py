"""Helper modules for runtime configuration."""

from .dotenv_loader import DotenvLoader

__all__ = ["DotenvLoader"]
