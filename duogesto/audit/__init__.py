"""Audit logging package."""

from duogesto.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
