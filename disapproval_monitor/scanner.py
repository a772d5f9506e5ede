"""
Account Scanner - Collects non-approved ads, keywords and assets for one account
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

from disapproval_monitor.capabilities import probe
from disapproval_monitor.config import MonitorConfig
from disapproval_monitor.models import (
    AccountScanResult,
    DisapprovedAd,
    DisapprovedAsset,
    DisapprovedKeyword,
    ItemOutcome,
)
from disapproval_monitor.policy import extract_policy_info


logger = logging.getLogger(__name__)

APPROVED = 'APPROVED'

# Outcome reasons recorded in diagnostics
REASON_DISAPPROVED = 'not_approved'
REASON_STATUS_UNREADABLE = 'status_unreadable'
REASON_APPROVED = 'approved'
REASON_NO_STATUS = 'status_unavailable'


class AccountScanner:
    """Per-account worker run by the platform fan-out"""

    def __init__(self, config: MonitorConfig):
        self.config = config

    def __call__(self, account) -> str:
        """Worker entry point: scan the account and return the serialized result"""
        return self.scan(account).to_json()

    # === Main Entry Point ===

    def scan(self, account) -> AccountScanResult:
        limit = self.config.max_rows_per_section
        result = AccountScanResult(account=account.display_name)

        result.ads = self._scan_category(
            result, 'ads',
            fetch=lambda: account.ads(limit),
            status_accessor='get_policy_approval_status',
            skip_missing_status=False,
            build=self._build_ad
        )
        result.keywords = self._scan_category(
            result, 'keywords',
            fetch=lambda: account.keywords(limit),
            status_accessor='get_approval_status',
            skip_missing_status=False,
            build=self._build_keyword
        )
        # Asset policy data is not available on every account
        result.assets = self._scan_category(
            result, 'assets',
            fetch=lambda: account.assets(limit),
            status_accessor='get_policy_approval_status',
            skip_missing_status=True,
            build=self._build_asset
        )

        logger.debug(
            f"Scanned {result.account}: {result.totals['ads']} ads, "
            f"{result.totals['keywords']} keywords, {result.totals['assets']} assets"
        )
        return result

    # === Category Scan ===

    def _scan_category(
        self,
        result: AccountScanResult,
        category: str,
        fetch: Callable[[], Iterable[Any]],
        status_accessor: str,
        skip_missing_status: bool,
        build: Callable[[Any, Optional[str]], Any]
    ) -> List[Any]:
        """Fetch and filter one category; a failure leaves the category empty"""
        records = []
        outcomes = []

        try:
            for entity in fetch():
                status = _read(entity, status_accessor)

                if status == APPROVED:
                    outcomes.append(ItemOutcome(category, 'skipped', REASON_APPROVED))
                    continue

                if status is None and skip_missing_status:
                    outcomes.append(ItemOutcome(category, 'skipped', REASON_NO_STATUS))
                    continue

                records.append(build(entity, status))
                reason = REASON_DISAPPROVED if status is not None else REASON_STATUS_UNREADABLE
                outcomes.append(ItemOutcome(category, 'included', reason))

        except Exception as error:
            logger.warning(f"{category.capitalize()} scan error for {result.account}: {error}")
            result.diagnostics.append(ItemOutcome(category, 'error', str(error)))
            return []

        result.diagnostics.extend(outcomes)
        return records

    # === Record Builders ===

    @staticmethod
    def _build_ad(ad, status: Optional[str]) -> DisapprovedAd:
        policy = extract_policy_info(ad)
        return DisapprovedAd(
            type=_read(ad, 'get_type'),
            campaign=_read(ad, 'get_campaign_name'),
            ad_group=_read(ad, 'get_ad_group_name'),
            status=status,
            topics=policy.topics,
            reasons=policy.reasons
        )

    @staticmethod
    def _build_keyword(keyword, status: Optional[str]) -> DisapprovedKeyword:
        policy = extract_policy_info(keyword)
        return DisapprovedKeyword(
            text=_read(keyword, 'get_text'),
            match_type=_read(keyword, 'get_match_type'),
            campaign=_read(keyword, 'get_campaign_name'),
            ad_group=_read(keyword, 'get_ad_group_name'),
            status=status,
            topics=policy.topics,
            reasons=policy.reasons
        )

    @staticmethod
    def _build_asset(asset, status: Optional[str]) -> DisapprovedAsset:
        policy = extract_policy_info(asset)
        return DisapprovedAsset(
            asset_type=_read(asset, 'get_type'),
            name=_read(asset, 'get_name'),
            status=status,
            topics=policy.topics,
            reasons=policy.reasons
        )


def _read(entity, accessor: str) -> Optional[str]:
    """Read an identifying field as text, None when unavailable"""
    result = probe(entity, accessor)
    if not result.ok or result.value is None:
        return None
    return str(result.value) or None
