# src/launchpad/ledger/constants.py
from __future__ import annotations

# Amounts, costs and rewards are unsigned 256-bit quantities. Anything larger is rejected.
MAX_UINT256: int = 2**256 - 1

# Token ids are sequential and start at 1.
FIRST_TOKEN_ID: int = 1

# Percentages in a withdrawal split must add up to exactly this.
TOTAL_PERCENTAGE: int = 100

ROLE_OWNER: str = "owner"
ROLE_ANY: str = "any"
