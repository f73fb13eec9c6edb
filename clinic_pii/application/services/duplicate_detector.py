"""
Duplicate registrant detection over lookup hashes.

The detector never decrypts: it normalizes and hashes candidate values and
probes the record store for equal lookup keys within one tenant. Its answer
is a user-facing pre-check only. The record store's uniqueness constraint is
what actually prevents two registrations of the same phone or email, and a
constraint violation is converted into the same result via
``conflict_from_violation``.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from clinic_pii.core.interfaces import IPIIRecordStore
from clinic_pii.domain.schemas import USER_SCHEMA, RecordSchema
from clinic_pii.domain.value_objects import TenantScope
from clinic_pii.infrastructure.security.encryption import LookupHasher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Outcome of a duplicate probe."""

    phone_exists: bool = False
    email_exists: bool = False
    name_exists: bool = False

    @property
    def name_or_email_exists(self) -> bool:
        return self.name_exists or self.email_exists

    @property
    def is_duplicate(self) -> bool:
        return self.phone_exists or self.name_or_email_exists

    def as_dict(self) -> dict[str, bool]:
        return {
            "phone_exists": self.phone_exists,
            "email_exists": self.email_exists,
            "name_exists": self.name_exists,
            "name_or_email_exists": self.name_or_email_exists,
            "is_duplicate": self.is_duplicate,
        }


class DuplicateDetector:
    """
    Decides whether candidate values already exist in a tenant.

    Candidates are keyed by lookup purpose: ``phone``, ``email`` and ``name``
    (the full name; only its first token is compared).

    The name signal is a loose heuristic: "John Smith" and "John Doe" collide,
    while "Doe John" and "John Doe" do not. It can be switched off with
    ``name_heuristic_enabled`` without touching stored lookup keys.
    """

    def __init__(
        self,
        record_store: IPIIRecordStore,
        lookup_hasher: LookupHasher,
        schema: RecordSchema = USER_SCHEMA,
        name_heuristic_enabled: bool = True,
    ):
        self._store = record_store
        self._hasher = lookup_hasher
        self._schema = schema
        self.name_heuristic_enabled = name_heuristic_enabled

    async def check(self, tenant: TenantScope, candidates: Mapping[str, str | None]) -> DuplicateCheckResult:
        """
        Probe the tenant for each present candidate value.

        Args:
            tenant: Tenant the probe is scoped to
            candidates: Raw values keyed by purpose (``phone``, ``email``, ``name``);
                missing or empty values are not probed

        Returns:
            DuplicateCheckResult
        """
        phone_exists = await self._exists(tenant, "phone", candidates.get("phone"))
        email_exists = await self._exists(tenant, "email", candidates.get("email"))
        name_exists = False
        if self.name_heuristic_enabled:
            name_exists = await self._exists(tenant, "name", candidates.get("name"))

        result = DuplicateCheckResult(
            phone_exists=phone_exists,
            email_exists=email_exists,
            name_exists=name_exists,
        )
        if result.is_duplicate:
            logger.info("Duplicate candidate detected in clinic %s", tenant.clinic_id)
        return result

    def conflict_from_violation(self, fields: Iterable[str]) -> DuplicateCheckResult:
        """
        Build the conflict result for a store constraint violation.

        ``fields`` are the record field names whose unique lookup keys
        collided. A violation the store could not attribute is reported as a
        phone collision, since every registration carries a unique phone.
        """
        purposes = set()
        for name in fields:
            try:
                purposes.add(self._schema.get(name).hash_purpose)
            except KeyError:
                purposes.add(name)
        if not purposes:
            purposes.add("phone")
        return DuplicateCheckResult(
            phone_exists="phone" in purposes,
            email_exists="email" in purposes,
            name_exists="name" in purposes,
        )

    async def _exists(self, tenant: TenantScope, purpose: str, raw_value: str | None) -> bool:
        spec = self._schema.field_for_purpose(purpose)
        if spec is None:
            return False
        digest = self._hasher.hash_value(raw_value, purpose)
        if digest is None:
            return False
        return await self._store.find_by_hash(tenant, spec.name, digest) is not None
