"""
Configuration for the auth module.

The header name comes from settings so deployments behind a proxy that
renames headers can override it (SHORTENER_DEVICE_HEADER).
"""

from shortener_platform.config import settings

DEVICE_ID_HEADER: str = settings.DEVICE_HEADER
