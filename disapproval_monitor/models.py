"""
Shared data models for Disapproval Monitor
"""

import json
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional


@dataclass(frozen=True)
class LabelGroup:
    """Account label routed to one or more recipients"""
    label: str
    to: str = ''
    cc: str = ''


@dataclass
class PolicyInfo:
    """Policy topics and reasons attached to a disapproved entity"""
    topics: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


@dataclass
class DisapprovedAd:
    type: Optional[str]
    campaign: Optional[str]
    ad_group: Optional[str]
    status: Optional[str]
    topics: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


@dataclass
class DisapprovedKeyword:
    text: Optional[str]
    match_type: Optional[str]
    campaign: Optional[str]
    ad_group: Optional[str]
    status: Optional[str]
    topics: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


@dataclass
class DisapprovedAsset:
    asset_type: Optional[str]
    name: Optional[str]
    status: Optional[str]
    topics: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


@dataclass
class ItemOutcome:
    """What happened to a single scanned item (or a whole category on error)"""
    category: str
    outcome: str  # 'included', 'skipped', 'error'
    reason: str = ''


@dataclass
class AccountScanResult:
    """Disapproved entities found in one account"""
    account: str
    ads: List[DisapprovedAd] = field(default_factory=list)
    keywords: List[DisapprovedKeyword] = field(default_factory=list)
    assets: List[DisapprovedAsset] = field(default_factory=list)
    diagnostics: List[ItemOutcome] = field(default_factory=list)

    @property
    def totals(self) -> Dict[str, int]:
        return {
            'ads': len(self.ads),
            'keywords': len(self.keywords),
            'assets': len(self.assets)
        }

    def count_outcomes(
        self,
        category: Optional[str] = None,
        outcome: Optional[str] = None,
        reason: Optional[str] = None
    ) -> int:
        """Count diagnostics entries matching every given filter"""
        return sum(
            1 for item in self.diagnostics
            if (category is None or item.category == category)
            and (outcome is None or item.outcome == outcome)
            and (reason is None or item.reason == reason)
        )

    def to_json(self) -> str:
        payload = asdict(self)
        payload['totals'] = self.totals
        return json.dumps(payload, sort_keys=True)

    @classmethod
    def from_json(cls, payload: str) -> 'AccountScanResult':
        """Rebuild a result from its serialized form, raises ValueError when malformed"""
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError("Scan payload is not an object")

        return cls(
            account=data.get('account') or '',
            ads=[DisapprovedAd(**item) for item in data.get('ads') or []],
            keywords=[DisapprovedKeyword(**item) for item in data.get('keywords') or []],
            assets=[DisapprovedAsset(**item) for item in data.get('assets') or []],
            diagnostics=[ItemOutcome(**item) for item in data.get('diagnostics') or []]
        )


@dataclass
class ExecutionResult:
    """Outcome of running the account worker against one account"""
    customer_id: str
    return_value: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.return_value is not None


@dataclass
class ReportTotals:
    ads: int = 0
    keywords: int = 0
    assets: int = 0
    accounts: int = 0

    @property
    def issues(self) -> int:
        return self.ads + self.keywords + self.assets


@dataclass
class MergedReport:
    """All account results for one label group"""
    label: str
    rows: List[AccountScanResult] = field(default_factory=list)
    totals: ReportTotals = field(default_factory=ReportTotals)


@dataclass
class GroupReport:
    """Rendered report for one label group"""
    label: str
    recipient: str
    cc: str
    subject: str
    html_body: str
    text_body: str
    totals: ReportTotals
    sent: bool = False


@dataclass
class GroupOutcome:
    """Per-group result of a run, used for the final summary"""
    label: str
    status: str  # 'sent', 'preview', 'skipped'
    report: Optional[GroupReport] = None
