"""
Sync orchestration for aperture-sync.

Usage:
    from aperture_sync.sync import SyncOptions, run_sync, run_all
"""

from aperture_sync.sync.orchestrator import SyncOptions, SyncResult, run_all, run_sync

__all__ = [
    "SyncOptions",
    "SyncResult",
    "run_sync",
    "run_all",
]
