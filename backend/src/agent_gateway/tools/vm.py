"""Virtual machine operations. Stubs: nothing is provisioned."""

from __future__ import annotations

import uuid
from typing import Any

from google.adk.tools import FunctionTool

from ..logging import get_logger

logger = get_logger(__name__)


async def create_vm(name: str, image: str, size: str) -> dict[str, Any]:
    """
    Create a new virtual machine in Azure.

    Args:
        name: The name of the virtual machine.
        image: The OS image for the VM (e.g. "Ubuntu", "Windows").
        size: The size of the VM (e.g. "Standard_DS1_v2").
    """
    logger.info("vm_create", name=name, image=image, size=size)
    return {
        "status": "success",
        "message": f"VM {name} created successfully.",
        "vmId": f"vm-{uuid.uuid4().hex[:9]}",
    }


async def update_vm(name: str, size: str) -> dict[str, Any]:
    """
    Update an existing virtual machine's configuration in Azure.

    Args:
        name: The name of the virtual machine to update.
        size: The new size for the VM.
    """
    logger.info("vm_update", name=name, size=size)
    return {
        "status": "success",
        "message": f"VM {name} updated to size {size} successfully.",
    }


async def delete_vm(name: str) -> dict[str, Any]:
    """
    Delete a virtual machine in Azure.

    Args:
        name: The name of the virtual machine to delete.
    """
    logger.info("vm_delete", name=name)
    return {
        "status": "success",
        "message": f"VM {name} deleted successfully.",
    }


def build_vm_tools() -> list[FunctionTool]:
    return [
        FunctionTool(create_vm, require_confirmation=True),
        FunctionTool(update_vm, require_confirmation=True),
        FunctionTool(delete_vm, require_confirmation=True),
    ]
