"""
Domain Interfaces (Ports)
"""

from .repositories import InstallmentRepository
from .stores import KeyValueStore, StoredItem

__all__ = [
    "InstallmentRepository",
    "KeyValueStore",
    "StoredItem",
]
