# src/launchpad/api/schemas.py
from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation. Domain payload rules are enforced
at apply time.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class TxSubmitRequest(BaseModel):
    tx_type: str = Field(..., min_length=1, description="Tx type, e.g. PRIVATE_MINT")
    signer: str = Field(..., min_length=1, description="Caller identity (Ed25519 public key hex)")
    payload: Dict[str, Any] = Field(default_factory=dict)
    value: int = Field(default=0, ge=0, description="Payment attached to the call")
    nonce: int = Field(default=0, ge=0, description="Signer nonce; must be last + 1 when signatures are required")
    sig: str = Field(default="", description="Ed25519 signature over the canonical tx message")
    system: bool = False

    model_config = {"extra": "forbid"}


__all__ = ["TxSubmitRequest"]
