from .account_repository import AccountRepository
from .deck_provisioner import DefaultDeckProvisioner

__all__ = ["AccountRepository", "DefaultDeckProvisioner"]
