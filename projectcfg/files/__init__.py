"""Managed property files."""

from .atomic import atomic_write_text, read_text_if_exists, write_if_changed
from .markers import MarkerManager
from .reconciler import ManagedFileReconciler

__all__ = [
    "ManagedFileReconciler",
    "MarkerManager",
    "atomic_write_text",
    "read_text_if_exists",
    "write_if_changed",
]
