"""Installment payment tracking."""

from duogesto.installments.tracker import InstallmentTracker, progress, toggle

__all__ = ["InstallmentTracker", "progress", "toggle"]
