"""Service descriptors and init-system backends for the Nix daemon."""

from nix_installer.daemon.base import (
    ResourceLimits,
    ServiceBackend,
    ServiceDescriptor,
    generate_service_descriptor,
)
from nix_installer.daemon.manager import backend_for

__all__ = [
    "ResourceLimits",
    "ServiceBackend",
    "ServiceDescriptor",
    "backend_for",
    "generate_service_descriptor",
]
