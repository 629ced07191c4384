"""Flash-loan financed leverage vault."""
from .vault import LeverageVault, VaultSettings

__all__ = ["LeverageVault", "VaultSettings"]
