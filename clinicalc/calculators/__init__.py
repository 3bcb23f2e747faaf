"""Calculator families. Each module exposes ``register_all(registry)``."""

from . import (
    body,
    cardiology,
    critical_care,
    electrolytes,
    emergency,
    hepatology,
    labs,
    obstetrics,
    pulmonary,
    renal,
    vte,
)

FAMILIES = [
    electrolytes,
    renal,
    body,
    cardiology,
    vte,
    pulmonary,
    hepatology,
    critical_care,
    emergency,
    labs,
    obstetrics,
]
