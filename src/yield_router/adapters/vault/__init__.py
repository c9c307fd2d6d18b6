from yield_router.adapters.vault.file_vault import FileVault

__all__ = ["FileVault"]
