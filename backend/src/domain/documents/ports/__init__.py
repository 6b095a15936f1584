"""Ports consumed by the records core (hexagonal boundaries)."""

from .object_storage_port import ObjectStoragePort, StoredFile
from .legal_hold_port import LegalHoldQueryPort

__all__ = ["ObjectStoragePort", "StoredFile", "LegalHoldQueryPort"]
