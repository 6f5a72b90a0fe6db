"""Audit history of back-office changes."""

from src.modules.audit.repository import AuditEntry, AuditRepository, diff

__all__ = [
    "AuditEntry",
    "AuditRepository",
    "diff",
]
