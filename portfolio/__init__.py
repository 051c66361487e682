"""Portfolio site with an admin-editable content document."""

from .app import create_app
from .config import Settings

__all__ = ["create_app", "Settings"]
__version__ = "0.1.0"
