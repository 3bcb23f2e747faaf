"""Calculator registry."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Dict, Iterator, List

from .errors import DuplicateRegistrationError, UnknownCalculatorError
from .models import CalculatorDefinition

logger = logging.getLogger(__name__)


class Registry:
    """Catalog of calculator definitions keyed by id.

    Populated once by :func:`build_registry`; there is no update or delete.
    Registration is serialized by a lock so modules loading on different
    threads cannot race on the same id.
    """

    def __init__(self):
        self._defs: Dict[str, CalculatorDefinition] = {}
        self._lock = threading.Lock()

    def register(self, definition: CalculatorDefinition) -> None:
        with self._lock:
            if definition.id in self._defs:
                raise DuplicateRegistrationError(definition.id)
            self._defs[definition.id] = definition

    def lookup(self, calculator_id: str) -> CalculatorDefinition:
        """Resolve an id, exact match first, then case-insensitive."""
        found = self._defs.get(calculator_id)
        if found is not None:
            return found
        wanted = str(calculator_id).strip().lower()
        for cid, definition in self._defs.items():
            if cid.lower() == wanted:
                return definition
        raise UnknownCalculatorError(calculator_id)

    def ids(self) -> List[str]:
        return list(self._defs)

    def __contains__(self, calculator_id: object) -> bool:
        return calculator_id in self._defs

    def __len__(self) -> int:
        return len(self._defs)

    def __iter__(self) -> Iterator[CalculatorDefinition]:
        return iter(list(self._defs.values()))


def build_registry() -> Registry:
    """Build a fresh registry holding every calculator family."""
    from .calculators import FAMILIES

    registry = Registry()
    for family in FAMILIES:
        family.register_all(registry)
    logger.debug(f"Registered {len(registry)} calculators from {len(FAMILIES)} families")
    return registry


@functools.lru_cache(maxsize=1)
def default_registry() -> Registry:
    return build_registry()
