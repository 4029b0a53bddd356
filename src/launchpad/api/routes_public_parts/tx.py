# src/launchpad/api/routes_public_parts/tx.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from launchpad.api.errors import ApiError
from launchpad.api.routes_public_parts.common import _executor, _require_signatures
from launchpad.api.schemas import TxSubmitRequest

router = APIRouter()

Json = Dict[str, Any]

# Admission failures on authentication map to 403; everything else is a 400.
_FORBIDDEN_ADMISSION = {"bad_sig", "bad_nonce"}


@router.post("/tx/submit")
def tx_submit(request: Request, body: TxSubmitRequest) -> Json:
    """Submit a tx envelope and apply it immediately.

    Returns:
      { ok, receipt } on success. Admission and domain rejections are mapped
      to error responses with {code, reason, details}.
    """
    ex = _executor(request)

    if bool(body.system):
        raise ApiError.forbidden(
            "system_tx_forbidden",
            "system txs cannot be submitted through the public tx endpoint",
            {"tx_type": body.tx_type},
        )

    meta = ex.submit_tx(body.model_dump(), require_signatures=_require_signatures(request))
    if not meta.get("ok"):
        code = str(meta.get("error") or "submit_failed")
        reason = str(meta.get("reason") or "tx rejected")
        details = meta.get("details") if isinstance(meta.get("details"), dict) else {}
        if code in _FORBIDDEN_ADMISSION:
            raise ApiError.forbidden(code, reason, details)
        raise ApiError.bad_request(code, reason, details)

    return {"ok": True, "receipt": meta.get("receipt")}
