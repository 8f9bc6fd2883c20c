"""Savings goals (DuoBank) and their movement ledger."""

from duogesto.goals.ledger import (
    DEPOSIT_REASON,
    TRANSFER_CATEGORY,
    TRANSFER_REASON,
    GoalLedger,
    InsufficientFundsError,
    travel_goal_amount,
)

__all__ = [
    "DEPOSIT_REASON",
    "TRANSFER_CATEGORY",
    "TRANSFER_REASON",
    "GoalLedger",
    "InsufficientFundsError",
    "travel_goal_amount",
]
