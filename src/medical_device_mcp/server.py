"""MCP server entry point for the Beurer BM55 and BF480 devices.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import MedicalDeviceError
from .session import (
    SUPPORTED_DEVICES,
    DeviceKind,
    get_measurements,
    list_attached_devices,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "medical-device",
    instructions="MCP server for Beurer BM55 and BF480 USB health devices",
)


def _profile_dict(kind: DeviceKind) -> dict[str, Any]:
    profile = SUPPORTED_DEVICES[kind]
    return {
        "device": profile.kind.value,
        "name": profile.name,
        "vendor_id": f"{profile.vendor_id:#06x}",
        "product_id": f"{profile.product_id:#06x}",
    }


def _download(device: DeviceKind, user) -> dict[str, Any]:
    try:
        measurements = get_measurements(device, user)
    except ValueError as e:
        # Bad user selectors and malformed readings both land here.
        return {"error": str(e)}
    except MedicalDeviceError as e:
        logger.warning("Download from %s failed: %s", device.value, e)
        return {"error": str(e)}

    return {
        "device": device.value,
        "user": user,
        "count": len(measurements),
        "measurements": [m.to_dict() for m in measurements],
    }


# ─── DEVICE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def list_devices() -> dict[str, Any]:
    """List the supported devices and which of them are plugged in."""
    attached = {profile.kind for profile in list_attached_devices()}
    return {
        "devices": [
            {**_profile_dict(kind), "attached": kind in attached}
            for kind in SUPPORTED_DEVICES
        ]
    }


@mcp.tool()
def get_blood_pressure_readings(user: str = "A") -> dict[str, Any]:
    """Download the stored blood pressure readings from a BM55 monitor.

    Readings are returned in the order the monitor stores them.

    Args:
        user: Monitor user memory, "A" or "B".
    """
    return _download(DeviceKind.BM55, user)


@mcp.tool()
def get_body_composition_readings(user: int = 1) -> dict[str, Any]:
    """Download the stored weight/body composition readings from a BF480 scale.

    Readings are returned oldest first.

    Args:
        user: Scale user number (1-10).
    """
    return _download(DeviceKind.BF480, user)


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("medical://devices")
def resource_devices() -> str:
    """Supported devices and their USB identifiers."""
    return json.dumps({"devices": [_profile_dict(kind) for kind in SUPPORTED_DEVICES]})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def summarize_blood_pressure(user: str = "A") -> str:
    """Guide the AI to summarize a user's blood pressure history.

    Args:
        user: Monitor user memory, "A" or "B".
    """
    return f"""Download the readings for user {user} using the get_blood_pressure_readings tool.
Summarize:
- Average systolic/diastolic pressure and pulse
- Highest and lowest readings with their times
- How many readings were flagged with arrhythmia
- Any trend over time

Do not give a diagnosis; suggest consulting a doctor for concerning values."""


@mcp.prompt()
def summarize_body_composition(user: int = 1) -> str:
    """Guide the AI to summarize a user's weight and body composition trend.

    Args:
        user: Scale user number (1-10).
    """
    return f"""Download the readings for user {user} using the get_body_composition_readings tool.
Summarize:
- Weight change between the first and last reading
- Body fat, water and muscle percentage trends
- Gaps in the measurement history"""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
