"""
shortener_platform package initializer.
"""

from . import cache
from . import manager
from . import monitoring
from . import storage
from . import validation

__all__ = ["cache", "manager", "monitoring", "storage", "validation"]
