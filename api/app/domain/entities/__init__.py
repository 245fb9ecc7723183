"""
Entidades del dominio.
"""
from app.domain.entities.binding import Binding
from app.domain.entities.sync import ChangeSet, SyncSummary

__all__ = [
    "Binding",
    "ChangeSet",
    "SyncSummary",
]
