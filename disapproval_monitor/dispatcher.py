"""
Group Dispatcher - Runs the account fan-out for each configured label group
"""

import logging
from typing import Optional

from disapproval_monitor.config import MonitorConfig
from disapproval_monitor.models import GroupReport, LabelGroup
from disapproval_monitor.routing import RoutingContext, resolve_cc, resolve_recipient


logger = logging.getLogger(__name__)

UNNAMED_LABEL = '(Unnamed Label)'


def escape_label(label: str) -> str:
    """Escape a label for use inside a single-quoted query string"""
    return label.replace('\\', '\\\\').replace("'", "\\'")


def label_predicate(label: str) -> str:
    """Selection predicate matching accounts that carry exactly this label"""
    return f"label.name = '{escape_label(label)}'"


class GroupDispatcher:
    """Selects a label's accounts and hands them to the platform fan-out"""

    def __init__(self, config: MonitorConfig, platform, worker, aggregator):
        self.config = config
        self.platform = platform
        self.worker = worker
        self.aggregator = aggregator

    async def dispatch(self, group: LabelGroup) -> Optional[GroupReport]:
        """Scan and report one group; None when the group was skipped"""
        recipient = resolve_recipient(group.to, self.config.default_to)
        if not recipient:
            logger.info(f'Skipping label "{group.label}" because no recipient is configured.')
            return None

        label = group.label or UNNAMED_LABEL
        if self.config.log_summary:
            logger.info(f"[{label}] Executing scan for accounts labeled: {label}")

        context = RoutingContext(label=label, to=recipient, cc=resolve_cc(group.cc))

        return await self.platform.execute_in_parallel(
            label_predicate(label),
            self.worker,
            self.aggregator,
            context.to_json()
        )
