"""Tenant scope value object."""

from dataclasses import dataclass

# Blob object keys are "<clinic_id>/<id>"; a separator inside the id would nest one clinic under another
_KEY_SEPARATOR = "/"


@dataclass(frozen=True)
class TenantScope:
    """
    Partition boundary for search and uniqueness.

    All lookups and duplicate probes are scoped by clinic; the same phone
    number may be registered once per clinic.
    """

    clinic_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.clinic_id, str) or not self.clinic_id.strip():
            raise ValueError("clinic_id must be a non-empty string")
        if _KEY_SEPARATOR in self.clinic_id:
            raise ValueError(f"clinic_id must not contain '{_KEY_SEPARATOR}'")

    def __str__(self) -> str:
        return self.clinic_id
