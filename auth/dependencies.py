"""
FastAPI dependency functions for device scoping.

These can be used in routes with Depends() to require the device header.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader

from .config import DEVICE_ID_HEADER
from .service import require_device_id

# auto_error=False so a missing header maps to our own 400 response
device_header = APIKeyHeader(name=DEVICE_ID_HEADER, auto_error=False)


def get_device_id(device_id: Optional[str] = Depends(device_header)) -> str:
    """
    Dependency that returns the caller's device id.

    Raises:
        DeviceIdRequiredError: Rendered as 400 {"error": "Device ID required"}.
    """
    return require_device_id(device_id)
