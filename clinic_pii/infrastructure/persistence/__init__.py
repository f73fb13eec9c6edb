"""Record store implementations."""

from clinic_pii.infrastructure.persistence.in_memory_record_store import InMemoryPIIRecordStore

__all__ = ["InMemoryPIIRecordStore"]
