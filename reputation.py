from __future__ import annotations

from typing import Literal, NamedTuple

Tier = Literal["New", "Medium", "High"]

VERIFIED_MIN_BALANCE = 3
MEDIUM_MIN_BALANCE = 2
HIGH_MIN_BALANCE = 5
MAX_SCORE = 100


class Reputation(NamedTuple):
    verified: bool
    tier: Tier
    score: int


def tier_for(balance: int) -> Tier:
    if balance >= HIGH_MIN_BALANCE:
        return "High"
    if balance >= MEDIUM_MIN_BALANCE:
        return "Medium"
    return "New"


def compute_reputation(balance: int) -> Reputation:
    """Trust tier and score derived purely from the owner's token balance."""
    return Reputation(
        verified=balance >= VERIFIED_MIN_BALANCE,
        tier=tier_for(balance),
        score=min(balance, MAX_SCORE),
    )
