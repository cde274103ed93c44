"""Python client for the DesiCargo API: session binding and per-consumer stores."""

from desicargo.client.api import ApiClient
from desicargo.client.session import SessionBinding
from desicargo.client.stores import BookingStore, BranchDirectory, UnloadingWorkflow, VehicleRegistry

__all__ = [
    "ApiClient",
    "SessionBinding",
    "BookingStore",
    "BranchDirectory",
    "VehicleRegistry",
    "UnloadingWorkflow",
]
