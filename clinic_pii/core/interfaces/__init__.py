"""Interfaces of the external collaborators consumed by the PII protection layer."""

from clinic_pii.core.interfaces.blob_store_interface import IBlobStore
from clinic_pii.core.interfaces.record_store_interface import IPIIRecordStore

__all__ = ["IBlobStore", "IPIIRecordStore"]
