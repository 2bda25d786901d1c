"""
ironcast - Batch bare-metal provisioning for OpenStack Ironic.

Pick available nodes, create servers in parallel, wait for ACTIVE.
"""

from ironcast.models.outcome import InstanceOutcome, RunResult
from ironcast.models.request import ProvisionRequest
from ironcast.orchestrator import provision

__version__ = "0.1.0"
__all__ = ["InstanceOutcome", "ProvisionRequest", "RunResult", "__version__", "provision"]
