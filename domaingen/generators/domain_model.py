"""DomainModelGenerator — persistence and cache helpers for entity structs.

This is a level 1 generator: its members are meant to be called by the
repository and cache layers of the enclosing service, so its artifact
declares persistence and cache capabilities.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from domaingen.config import DEFAULT_CACHE_TTL, DEFAULT_PRODUCT
from domaingen.errors import SpecError
from domaingen.generators.base import (
    Artifact,
    Capability,
    PatternGenerator,
    constant,
    method,
    static,
)
from domaingen.generators.identifier import Clock, utc_now
from domaingen.models.descriptor import TypeDescriptor
from domaingen.naming import pluralize, snake_case
from domaingen.rules.tables import RuleTables

logger = logging.getLogger(__name__)


class AuditLogEntry(BaseModel):
    """One recorded action on a domain entity."""

    entity_type: str
    entity_id: str
    action: str
    user_id: str | None = None
    product: str = DEFAULT_PRODUCT
    timestamp: datetime


class DomainModelGenerator(PatternGenerator):
    """Generate table name, cache keys and audit entries for a struct with an ``id``."""

    def __init__(self, cache_ttl: int = DEFAULT_CACHE_TTL, clock: Clock = utc_now) -> None:
        self._cache_ttl = cache_ttl
        self._clock = clock

    @property
    def name(self) -> str:
        return "domain_model"

    @property
    def description(self) -> str:
        return "Persistence table name, product-scoped cache keys and audit log entries"

    @property
    def level(self) -> int:
        return 1

    def supports(self, descriptor: TypeDescriptor) -> bool:
        return super().supports(descriptor) and descriptor.get_field("id") is not None

    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        if descriptor.get_field("id") is None:
            raise SpecError("domain models require an 'id' field", descriptor.name)

        type_name = descriptor.name
        entity = snake_case(type_name)
        table_name = descriptor.attribute("table_name") or pluralize(entity)
        cache_ttl = descriptor.attribute("cache_ttl", self._cache_ttl)
        clock = self._clock

        def cache_key(self, product: str = DEFAULT_PRODUCT) -> str:
            """Cache key ``<product>:<entity>:<id>`` for this instance."""
            return f"{product}:{entity}:{self.id}"

        def cache_key_for(product: str, entity_id: Any) -> str:
            """Cache key for an entity id without an instance."""
            return f"{product}:{entity}:{entity_id}"

        def cache_pattern(product: str = DEFAULT_PRODUCT) -> str:
            """Glob pattern matching every cached entity of this type in *product*."""
            return f"{product}:{entity}:*"

        def cache_key_with_ttl(self, product: str = DEFAULT_PRODUCT) -> tuple[str, int]:
            """Cache key for this instance paired with the type's TTL."""
            return f"{product}:{entity}:{self.id}", cache_ttl

        def create_audit_log(self, action: str, user_id: Any = None, product: str = DEFAULT_PRODUCT) -> AuditLogEntry:
            """Audit entry for *action* on this instance, stamped with the current time."""
            entry = AuditLogEntry(
                entity_type=type_name,
                entity_id=str(self.id),
                action=action,
                user_id=None if user_id is None else str(user_id),
                product=product,
                timestamp=clock(),
            )
            logger.info("Domain model action recorded: %s %s (%s)", type_name, action, entry.entity_id)
            return entry

        members = [
            constant("TABLE_NAME", table_name, "Persistence table for this entity."),
            constant("CACHE_TTL", cache_ttl, "Cache lifetime in seconds."),
            method(cache_key),
            static(cache_key_for),
            static(cache_pattern),
            method(cache_key_with_ttl),
            method(create_audit_log),
        ]
        body = {
            "table_name": table_name,
            "cache_ttl": cache_ttl,
            "cache_namespace": entity,
        }
        return self._artifact(
            descriptor,
            members,
            dependencies={Capability.PERSISTENCE, Capability.CACHE, Capability.CLOCK},
            body=body,
        )
