# src/launchpad/runtime/apply/__init__.py
"""Domain-specific apply modules.

Each module implements deterministic collection state transitions for a subset
of tx types and returns None for tx types it does not own.

NOTE: Keep this package import-safe (no imports of domain_dispatch).
"""

from __future__ import annotations

__all__ = [
    "issuance",
    "registry",
    "staking",
    "treasury",
]
