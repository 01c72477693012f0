from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FeePolicy:
    """Maps daily volatility to a spread fee in [base_fee, max_fee].

    spread = min(base_fee + volatility * volatility_weight, max_fee)
    """

    base_fee: float = 0.002
    volatility_weight: float = 0.5
    max_fee: float = 0.02
    admin_fee: float = 0.005
    default_spread_fee: float = 0.002

    def __post_init__(self) -> None:
        if self.base_fee < 0 or self.volatility_weight < 0 or self.admin_fee < 0:
            raise ValueError("fee policy parameters must be non-negative")
        if self.base_fee > self.max_fee:
            raise ValueError("base_fee must not exceed max_fee")

    def recommended_spread_fee(self, daily_volatility: float) -> float:
        volatility = max(daily_volatility, 0.0)
        return min(self.base_fee + volatility * self.volatility_weight, self.max_fee)

    def total_fee(self, spread_fee: float) -> float:
        return self.admin_fee + spread_fee
