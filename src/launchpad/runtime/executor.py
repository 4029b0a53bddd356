# src/launchpad/runtime/executor.py
from __future__ import annotations

import copy
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from launchpad.runtime import queries
from launchpad.runtime.clock import Clock, SystemClock
from launchpad.runtime.collection_config import CollectionConfig, genesis_state, load_collection_config
from launchpad.runtime.domain_dispatch import apply_tx, envelope_from_any
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.runtime_logging import log_event
from launchpad.runtime.sigverify import SignatureVerifier
from launchpad.runtime.sqlite_db import SqliteCollectionStore, SqliteDB
from launchpad.runtime.state_invariants import ensure_state
from launchpad.runtime.tx_admission import admit_tx
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]

log = logging.getLogger("launchpad.executor")

# In-memory tail of emitted events kept for read APIs.
MAX_RECENT_EVENTS = 1_000


def _safe_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


class ExecutorError(RuntimeError):
    pass


class CollectionExecutor:
    """Single writer for one collection.

    Every state transition goes through submit(): the tx is applied to a deep
    copy of the current state, and the copy replaces the state only when the
    apply succeeds. A rejected tx leaves no domain effect behind.

    With db_path set, each committed state and its events are persisted to SQLite
    and reloaded on restart.
    """

    def __init__(
        self,
        *,
        config: Optional[CollectionConfig] = None,
        state: Optional[Json] = None,
        clock: Optional[Clock] = None,
        verifier: Optional[SignatureVerifier] = None,
        db_path: Optional[str] = None,
    ) -> None:
        self._lock = threading.Lock()
        self.clock: Clock = clock or SystemClock()
        self.verifier = verifier
        self._events: List[Json] = []

        self._store: Optional[SqliteCollectionStore] = None
        if db_path:
            self._store = SqliteCollectionStore(db=SqliteDB(path=str(db_path)))

        if self._store is not None and self._store.exists():
            self.state = self._store.read()
            if config is not None:
                have = str((self.state.get("params") or {}).get("collection_id") or "")
                if have and have != config.collection_id:
                    raise ExecutorError(
                        f"collection_id mismatch: db={have!r} config={config.collection_id!r}. Refuse to start."
                    )
        else:
            if state is not None:
                self.state = copy.deepcopy(state)
            else:
                self.state = genesis_state(config or load_collection_config())
            ensure_state(self.state)
            if self._store is not None:
                self._store.write(self.state)

        self.state.setdefault("tx_count", 0)

    # ----------------------------
    # Public accessors
    # ----------------------------

    @property
    def store(self) -> Optional[SqliteCollectionStore]:
        return self._store

    def read_state(self) -> Json:
        return self.state

    def snapshot(self) -> Json:
        with self._lock:
            return copy.deepcopy(self.state)

    def recent_events(self, *, limit: int = 100) -> List[Json]:
        with self._lock:
            return [dict(e) for e in self._events[-max(1, int(limit)) :]]

    # ----------------------------
    # Writes
    # ----------------------------

    def _now(self) -> int:
        # The collection clock never moves backwards.
        return max(_safe_int(self.clock.now(), 0), _safe_int(self.state.get("time"), 0))

    def _consume_nonce(self, st: Json, env: TxEnvelope) -> None:
        if int(env.nonce) <= 0:
            return
        accounts = st.setdefault("accounts", {})
        acct = accounts.get(env.signer)
        if not isinstance(acct, dict):
            acct = {"balance": 0, "nonce": 0}
            accounts[env.signer] = acct
        acct["nonce"] = max(_safe_int(acct.get("nonce"), 0), int(env.nonce))

    def submit(self, env: Any) -> Json:
        """Apply one tx atomically. Returns the receipt; raises ApplyError on rejection.

        A positive envelope nonce is consumed even when the tx is rejected.
        """
        env_obj = envelope_from_any(env)

        with self._lock:
            if int(env_obj.nonce) > 0:
                last = _safe_int(((self.state.get("accounts") or {}).get(env_obj.signer) or {}).get("nonce"), 0)
                if int(env_obj.nonce) <= last:
                    raise ApplyError("bad_nonce", "nonce_already_used", {"nonce": int(env_obj.nonce), "last": last})

            working: Json = copy.deepcopy(self.state)
            working["time"] = self._now()

            try:
                receipt = apply_tx(working, env_obj, verifier=self.verifier)
            except ApplyError as e:
                if int(env_obj.nonce) > 0:
                    self._consume_nonce(self.state, env_obj)
                    if self._store is not None:
                        self._store.write(self.state)
                log_event(
                    log,
                    "tx_rejected",
                    tx_type=env_obj.tx_type,
                    signer=env_obj.signer,
                    code=e.code,
                    reason=e.reason,
                )
                raise

            self._consume_nonce(working, env_obj)
            working["tx_count"] = _safe_int(working.get("tx_count"), 0) + 1

            events = [dict(ev) for ev in (receipt.get("events") or []) if isinstance(ev, dict)]
            if self._store is not None:
                self._store.commit(working, tx_type=env_obj.tx_type, events=events)

            self.state = working
            self._events.extend(events)
            if len(self._events) > MAX_RECENT_EVENTS:
                del self._events[: len(self._events) - MAX_RECENT_EVENTS]

        log_event(
            log,
            "tx_applied",
            tx_type=env_obj.tx_type,
            signer=env_obj.signer,
            tx_count=working["tx_count"],
            events=len(events),
        )
        return receipt

    def submit_tx(self, env: Json, *, require_signatures: bool = True) -> Json:
        """Admission + apply for envelopes from untrusted sources.

        Returns {"ok": True, "receipt": ...} or {"ok": False, "error", "reason", "details"}.
        """
        if not isinstance(env, dict):
            return {"ok": False, "error": "bad_env", "reason": "not_object", "details": {}}

        verdict = admit_tx(env, self.state, require_signatures=require_signatures)
        if not verdict.ok:
            return {"ok": False, "error": verdict.code, "reason": verdict.reason, "details": verdict.details or {}}

        try:
            receipt = self.submit(env)
        except ApplyError as e:
            return {"ok": False, "error": e.code, "reason": e.reason, "details": e.details or {}}
        return {"ok": True, "receipt": receipt}

    # ----------------------------
    # Reads
    # ----------------------------

    def now(self) -> int:
        with self._lock:
            return self._now()

    def calculate_token_stake_rewards(self, token_ids: List[Any], caller: str) -> List[Json]:
        with self._lock:
            return queries.calculate_token_stake_rewards(self.state, token_ids, caller, self._now())

    def verify_signature(self, wallet: str, phase: Any, signature: Any) -> bool:
        with self._lock:
            return queries.verify_signature(self.state, wallet, phase, signature, verifier=self.verifier)


@dataclass
class ExecutorBootConfig:
    db_path: Optional[str]
    collection_config_path: Optional[str]


def boot_config_from_env() -> ExecutorBootConfig:
    db_path = (os.environ.get("LAUNCHPAD_DB_PATH") or "").strip() or None
    cfg_path = (os.environ.get("LAUNCHPAD_COLLECTION_CONFIG_PATH") or "").strip() or None
    return ExecutorBootConfig(db_path=db_path, collection_config_path=cfg_path)


def build_executor(cfg: Optional[ExecutorBootConfig] = None) -> CollectionExecutor:
    """Build a CollectionExecutor from an explicit boot config or, if omitted, from env."""
    c = cfg or boot_config_from_env()
    return CollectionExecutor(
        config=load_collection_config(config_path=c.collection_config_path),
        db_path=c.db_path,
    )


__all__ = ["CollectionExecutor", "ExecutorBootConfig", "ExecutorError", "boot_config_from_env", "build_executor"]
