"""Utility modules for the reconciliation kernel."""

from recon_kernel.utils.locking import KeyedLock

__all__ = ["KeyedLock"]
