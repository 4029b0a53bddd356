# src/launchpad/runtime/metadata.py
from __future__ import annotations

from typing import Any, Dict

from launchpad.runtime.apply.registry import parse_token_id, require_token

Json = Dict[str, Any]


def token_uri(state: Json, token_id: Any) -> str:
    """Metadata URI of an issued token.

    Format:
      {base_uri}/collection-launches/{collection_id}/tokens/{id}/metadata?network={network}

    The collection id is lower-cased. Raises not_minted for unissued ids.
    """
    tid = parse_token_id(token_id)
    require_token(state, tid)

    params = state.get("params") if isinstance(state.get("params"), dict) else {}
    base = str(params.get("base_uri") or "").rstrip("/")
    collection_id = str(params.get("collection_id") or "").strip().lower()
    network = str(params.get("network") or "")

    return f"{base}/collection-launches/{collection_id}/tokens/{tid}/metadata?network={network}"


__all__ = ["token_uri"]
