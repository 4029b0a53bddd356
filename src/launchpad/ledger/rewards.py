# src/launchpad/ledger/rewards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from launchpad.ledger.constants import MAX_UINT256

Json = Dict[str, Any]


@dataclass
class RewardError(RuntimeError):
    code: str
    reason: str
    details: Json

    def __str__(self) -> str:
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass(frozen=True)
class StakeReward:
    reward: int
    reward_count: int

    def to_json(self) -> Json:
        return {"reward": int(self.reward), "reward_count": int(self.reward_count)}


NO_REWARD = StakeReward(reward=0, reward_count=0)


def _as_int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return int(default)


def compute_reward_count(
    *,
    elapsed: int,
    interval: int,
    extension_limit: int,
    stake_limit_per_token: int,
    lifetime_reward_count: int,
) -> int:
    """Number of reward intervals one stake cycle earns.

    Three caps apply at once:
      - time:     floor(elapsed / interval)
      - lifetime: stake_limit_per_token - lifetime_reward_count
      - option:   extension_limit + 1 (one guaranteed interval plus the extensions)
    """
    iv = _as_int(interval)
    if iv <= 0:
        raise RewardError("invalid_option", "invalid_interval", {"interval": interval})

    el = max(_as_int(elapsed), 0)
    by_time = el // iv
    by_life = _as_int(stake_limit_per_token) - _as_int(lifetime_reward_count)
    by_option = _as_int(extension_limit) + 1

    return max(min(by_time, by_life, by_option), 0)


def compute_stake_reward(
    *,
    stake: Json,
    option: Json,
    token: Json,
    stake_limit_per_token: int,
    identity: str,
    now: int,
) -> StakeReward:
    """Reward a stake record would pay out to `identity` at time `now`.

    Only the token's original minter is eligible; anyone else gets zero even if
    the stake itself is valid and complete.
    """
    minter = str(token.get("original_minter") or "").strip()
    if not minter or str(identity or "").strip() != minter:
        return NO_REWARD

    count = compute_reward_count(
        elapsed=_as_int(now) - _as_int(stake.get("start_time")),
        interval=_as_int(option.get("interval")),
        extension_limit=_as_int(option.get("extension_limit")),
        stake_limit_per_token=_as_int(stake_limit_per_token),
        lifetime_reward_count=_as_int(token.get("lifetime_reward_count")),
    )
    if count <= 0:
        return NO_REWARD

    reward = count * _as_int(option.get("reward_per_interval"))
    if reward > MAX_UINT256:
        raise RewardError("invalid_payload", "amount_overflow", {"reward_count": count})
    return StakeReward(reward=int(reward), reward_count=int(count))


__all__ = ["NO_REWARD", "RewardError", "StakeReward", "compute_reward_count", "compute_stake_reward"]
