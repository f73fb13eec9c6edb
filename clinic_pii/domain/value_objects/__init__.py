"""Value objects for the PII protection layer."""

from clinic_pii.domain.value_objects.lookup_key import LookupKey
from clinic_pii.domain.value_objects.storage_payload import StoragePayload
from clinic_pii.domain.value_objects.stored_field import StoredField
from clinic_pii.domain.value_objects.tenant_scope import TenantScope

__all__ = ["LookupKey", "StoragePayload", "StoredField", "TenantScope"]
