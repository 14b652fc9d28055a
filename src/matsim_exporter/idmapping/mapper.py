"""
Output identifiers for network, zoning and service entities.

Three strategies are supported:

  - id           internal sequence id, passed through
  - xml_id       structured source id, passed through
  - external_id  free-form tag from the original data; may repeat, so the
                 mapper deduplicates by appending a per-category counter and
                 writes the adjusted tag back onto the entity

One mapper instance exists per entity category and per run.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from matsim_exporter.core import ILogger, get_logger


class IdMapperType(StrEnum):
    ID = "id"
    XML_ID = "xml_id"
    EXTERNAL_ID = "external_id"


class IdMapper:
    def __init__(
        self,
        category: str,
        strategy: IdMapperType = IdMapperType.ID,
        *,
        logger: ILogger | None = None,
    ) -> None:
        self.category = category
        self.strategy = IdMapperType(strategy)
        self.log = (logger or get_logger(__name__)).bind(id_category=category)

        self._counters: dict[str, int] = {}
        self._used: set[str] = set()
        # keyed by identity; the entity is kept alive so its address cannot be reused
        self._assigned: dict[int, tuple[Any, str]] = {}
        self._fallback_logged = False

    def id_for(self, entity: Any) -> str:
        """
        Identifier for `entity`. Repeated calls for the same entity in a run return
        the same value.
        """
        key = id(entity)
        found = self._assigned.get(key)
        if found is not None:
            return found[1]

        if self.strategy is IdMapperType.ID:
            out = str(entity.id)
        elif self.strategy is IdMapperType.XML_ID:
            out = self._xml_id(entity)
        else:
            out = self._unique_external_id(entity)

        self._assigned[key] = (entity, out)
        self._used.add(out)
        return out

    def reset(self) -> None:
        self._counters.clear()
        self._used.clear()
        self._assigned.clear()
        self._fallback_logged = False

    @property
    def assigned_count(self) -> int:
        return len(self._assigned)

    def _xml_id(self, entity: Any) -> str:
        xml_id = getattr(entity, "xml_id", None)
        if xml_id is None or xml_id == "":
            return str(entity.id)
        return str(xml_id)

    def _unique_external_id(self, entity: Any) -> str:
        raw = getattr(entity, "external_id", None)
        if raw is None or str(raw).strip() == "":
            if not self._fallback_logged:
                self.log.warning(
                    "[FALLBACK] entity without external id, using xml id instead",
                    entity_id=entity.id,
                )
                self._fallback_logged = True
            raw = self._xml_id(entity)
        tag = str(raw)

        if tag not in self._counters and tag not in self._used:
            self._counters[tag] = 0
            return tag

        count = self._counters.get(tag, 0)
        candidate = tag
        while candidate in self._used:
            count += 1
            candidate = f"{tag}{count}"
        self._counters[tag] = count

        self.log.debug("[DEDUP] duplicate external id", tag=tag, assigned=candidate)
        if hasattr(entity, "external_id"):
            entity.external_id = candidate
        return candidate
