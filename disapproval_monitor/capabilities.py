"""
Capability probing for platform entity handles

Entity handles may or may not expose a given accessor, and any accessor may
fail. Probes turn each read into a value object instead of an exception.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence


@dataclass(frozen=True)
class Probe:
    """Result of reading one optional capability"""
    name: str
    available: bool
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.available and self.error is None


Strategy = Callable[[Any], Probe]


def probe(entity: Any, accessor: str) -> Probe:
    """Call a zero-argument accessor if the entity has one"""
    method = getattr(entity, accessor, None)
    if not callable(method):
        return Probe(accessor, available=False)

    try:
        return Probe(accessor, available=True, value=method())
    except Exception as error:
        return Probe(accessor, available=True, error=str(error) or type(error).__name__)


def read_field(entity: Any, name: str) -> Probe:
    """Read a raw attribute (or mapping key), ignoring methods"""
    if isinstance(entity, Mapping):
        if name in entity:
            return Probe(name, available=True, value=entity[name])
        return Probe(name, available=False)

    try:
        value = getattr(entity, name)
    except AttributeError:
        return Probe(name, available=False)
    except Exception as error:
        return Probe(name, available=True, error=str(error) or type(error).__name__)

    if callable(value):
        return Probe(name, available=False)
    return Probe(name, available=True, value=value)


def probe_capabilities(entity: Any, capabilities: Dict[str, str]) -> Dict[str, Probe]:
    """Probe every named capability, mapping capability name -> accessor name"""
    return {
        capability: probe(entity, accessor)
        for capability, accessor in capabilities.items()
    }


def call(accessor: str) -> Strategy:
    return lambda entity: probe(entity, accessor)


def field(name: str) -> Strategy:
    return lambda entity: read_field(entity, name)


def resolve_first(entity: Any, strategies: Sequence[Strategy], default: Any = None) -> Any:
    """Return the first truthy value produced by the strategies, in order"""
    for strategy in strategies:
        result = strategy(entity)
        if result.ok and result.value:
            return result.value
    return default
