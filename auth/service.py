"""
Core device-id logic.

Extracting the device id is kept apart from FastAPI so it can be reused by
scripts and tested without a request.
"""

from typing import Optional

from shortener_platform.exceptions import DeviceIdRequiredError


def require_device_id(device_id: Optional[str]) -> str:
    """
    Return the device id unchanged.

    Raises:
        DeviceIdRequiredError: If the header was missing or empty.
    """
    if device_id is None or not device_id.strip():
        raise DeviceIdRequiredError("Device ID required")
    return device_id
