"""
Routing context passed from the dispatcher to the report aggregator

Account workers run as isolated invocations, so routing travels as a JSON
string rather than a shared object.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingContext:
    label: str = ''
    to: str = ''
    cc: str = ''

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, payload: Optional[str]) -> 'RoutingContext':
        """Parse a context string; malformed input yields an empty context"""
        try:
            data = json.loads(payload or '{}')
        except (TypeError, ValueError) as error:
            logger.warning(f"Could not parse routing context: {error}")
            return cls()

        if not isinstance(data, dict):
            return cls()

        return cls(
            label=str(data.get('label') or ''),
            to=str(data.get('to') or ''),
            cc=str(data.get('cc') or '')
        )


def resolve_recipient(value: Optional[str], default_to: str) -> str:
    """Group recipient if set, otherwise the configured default"""
    if value and str(value).strip():
        return str(value).strip()
    return (default_to or '').strip()


def resolve_cc(value: Optional[str]) -> str:
    return str(value).strip() if value else ''
