"""Actions shared by every platform."""

from nix_installer.action.common.configure_enterprise_edition_init_service import (
    ConfigureEnterpriseEditionInitService,
)
from nix_installer.action.common.configure_init_service import ConfigureInitService

__all__ = ["ConfigureEnterpriseEditionInitService", "ConfigureInitService"]
