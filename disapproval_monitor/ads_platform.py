"""
Ads Platform - Account selection, entity enumeration and parallel fan-out
on top of the Google Ads API
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from google.ads.googleads.client import GoogleAdsClient
from google.ads.googleads.errors import GoogleAdsException

from disapproval_monitor.models import ExecutionResult


logger = logging.getLogger(__name__)

# Zero-valued proto enums read back for statuses the API never set
UNSET_STATUSES = ('UNSPECIFIED', 'UNKNOWN')

ADS_QUERY = """
    SELECT
        ad_group_ad.ad.id,
        ad_group_ad.ad.type,
        campaign.name,
        ad_group.name,
        ad_group_ad.policy_summary.approval_status,
        ad_group_ad.policy_summary.policy_topic_entries
    FROM ad_group_ad
    WHERE ad_group_ad.status != 'REMOVED'
        AND ad_group.status != 'REMOVED'
        AND campaign.status != 'REMOVED'
    LIMIT {limit}
"""

KEYWORDS_QUERY = """
    SELECT
        ad_group_criterion.criterion_id,
        ad_group_criterion.keyword.text,
        ad_group_criterion.keyword.match_type,
        campaign.name,
        ad_group.name,
        ad_group_criterion.approval_status,
        ad_group_criterion.policy_summary.policy_topic_entries
    FROM ad_group_criterion
    WHERE ad_group_criterion.type = KEYWORD
        AND ad_group_criterion.negative = FALSE
        AND ad_group_criterion.status != 'REMOVED'
        AND ad_group.status != 'REMOVED'
        AND campaign.status != 'REMOVED'
    LIMIT {limit}
"""

ASSETS_QUERY = """
    SELECT
        asset.id,
        asset.type,
        asset.name,
        asset.policy_summary.approval_status,
        asset.policy_summary.policy_topic_entries
    FROM asset
    LIMIT {limit}
"""

LABELS_QUERY = "SELECT label.resource_name FROM label WHERE {predicate}"

LABELED_CLIENTS_QUERY = """
    SELECT customer_client_label.client_customer
    FROM customer_client_label
    WHERE customer_client_label.label IN ({labels})
"""

CLIENT_NAMES_QUERY = """
    SELECT customer_client.id, customer_client.descriptive_name
    FROM customer_client
    WHERE customer_client.level <= 1
"""


def format_customer_id(customer_id: str) -> str:
    """Format a customer id as 123-456-7890"""
    digits = str(customer_id).replace('-', '')
    if len(digits) != 10:
        return digits
    return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, 'name', None) or str(value)


def _status_name(value: Any) -> Optional[str]:
    """Approval status name, None when the API left the status unset"""
    name = _enum_name(value)
    if name in UNSET_STATUSES:
        return None
    return name


# === Entity Handles ===

class PolicyEvidence:
    """Single free-text evidence line for a policy topic"""

    def __init__(self, text: str):
        self.text = text


class PolicyTopic:
    """Wraps a PolicyTopicEntry message"""

    def __init__(self, entry):
        self._entry = entry

    def get_topic(self) -> str:
        return self._entry.topic

    def get_evidences(self) -> List[PolicyEvidence]:
        evidences = []
        for evidence in self._entry.evidences:
            texts = list(evidence.text_list.texts)
            texts.extend(evidence.website_list.websites)
            texts.extend(evidence.destination_text_list.destination_texts)
            evidences.extend(PolicyEvidence(text) for text in texts)
        return evidences


class AdEntity:
    def __init__(self, row):
        self._row = row

    def get_type(self) -> Optional[str]:
        return _enum_name(self._row.ad_group_ad.ad.type_)

    def get_campaign_name(self) -> str:
        return self._row.campaign.name

    def get_ad_group_name(self) -> str:
        return self._row.ad_group.name

    def get_policy_approval_status(self) -> Optional[str]:
        return _status_name(self._row.ad_group_ad.policy_summary.approval_status)

    def get_policy_topics(self) -> List[PolicyTopic]:
        return [PolicyTopic(entry) for entry in self._row.ad_group_ad.policy_summary.policy_topic_entries]


class KeywordEntity:
    def __init__(self, row):
        self._row = row

    def get_text(self) -> str:
        return self._row.ad_group_criterion.keyword.text

    def get_match_type(self) -> Optional[str]:
        return _enum_name(self._row.ad_group_criterion.keyword.match_type)

    def get_campaign_name(self) -> str:
        return self._row.campaign.name

    def get_ad_group_name(self) -> str:
        return self._row.ad_group.name

    def get_approval_status(self) -> Optional[str]:
        return _status_name(self._row.ad_group_criterion.approval_status)

    def get_policy_topics(self) -> List[PolicyTopic]:
        return [PolicyTopic(entry) for entry in self._row.ad_group_criterion.policy_summary.policy_topic_entries]


class AssetEntity:
    def __init__(self, row):
        self._row = row

    def get_type(self) -> Optional[str]:
        return _enum_name(self._row.asset.type_)

    def get_name(self) -> str:
        return self._row.asset.name

    def get_policy_approval_status(self) -> Optional[str]:
        return _status_name(self._row.asset.policy_summary.approval_status)

    def get_policy_topics(self) -> List[PolicyTopic]:
        return [PolicyTopic(entry) for entry in self._row.asset.policy_summary.policy_topic_entries]


# === Accounts ===

class AccountSession:
    """One client account, the unit of work for the fan-out"""

    def __init__(self, client, customer_id: str, name: str = ''):
        self.client = client
        self.customer_id = str(customer_id).replace('-', '')
        self.name = name

    @property
    def display_name(self) -> str:
        if not self.name:
            return format_customer_id(self.customer_id)
        return f"{self.name} ({format_customer_id(self.customer_id)})"

    def ads(self, limit: int) -> List[AdEntity]:
        return [AdEntity(row) for row in self._search(ADS_QUERY.format(limit=int(limit)))]

    def keywords(self, limit: int) -> List[KeywordEntity]:
        return [KeywordEntity(row) for row in self._search(KEYWORDS_QUERY.format(limit=int(limit)))]

    def assets(self, limit: int) -> List[AssetEntity]:
        return [AssetEntity(row) for row in self._search(ASSETS_QUERY.format(limit=int(limit)))]

    def _search(self, query: str) -> Iterable:
        service = self.client.get_service("GoogleAdsService")
        return service.search(customer_id=self.customer_id, query=query)


class AdsPlatform:
    """Account selection plus the run-worker-per-account fan-out"""

    def __init__(self, max_parallel_accounts: int = 10):
        self.max_parallel_accounts = max(1, int(max_parallel_accounts))

    def select_accounts(self, predicate: str) -> List[Any]:
        raise NotImplementedError

    async def execute_in_parallel(
        self,
        predicate: str,
        worker: Callable[[Any], str],
        aggregator: Callable[[List[ExecutionResult], str], Any],
        context: str
    ) -> Any:
        """Run worker once per matching account, then hand every result to the aggregator"""
        accounts = await asyncio.to_thread(self.select_accounts, predicate)
        logger.debug(f"Fan-out over {len(accounts)} accounts for: {predicate}")

        results = await self._run_workers(accounts, worker)
        return await asyncio.to_thread(aggregator, results, context)

    async def _run_workers(self, accounts: List[Any], worker: Callable[[Any], str]) -> List[ExecutionResult]:
        semaphore = asyncio.Semaphore(self.max_parallel_accounts)

        async def run_one(account) -> ExecutionResult:
            async with semaphore:
                try:
                    value = await asyncio.to_thread(worker, account)
                    return ExecutionResult(customer_id=account.customer_id, return_value=value)
                except Exception as error:
                    logger.warning(f"Worker failed for account {account.customer_id}: {error}")
                    return ExecutionResult(customer_id=account.customer_id, error=str(error) or type(error).__name__)

        return list(await asyncio.gather(*(run_one(account) for account in accounts)))


class GoogleAdsPlatform(AdsPlatform):
    """Google Ads manager account as the fan-out platform"""

    def __init__(self, client: GoogleAdsClient, manager_customer_id: Optional[str] = None, max_parallel_accounts: int = 10):
        super().__init__(max_parallel_accounts)
        self.client = client
        manager_id = manager_customer_id or getattr(client, 'login_customer_id', None)
        if not manager_id:
            raise ValueError("A manager (login) customer id is required to select client accounts")
        self.manager_customer_id = str(manager_id).replace('-', '')

    @classmethod
    def from_storage(cls, path: Optional[str] = None, max_parallel_accounts: int = 10) -> 'GoogleAdsPlatform':
        """Build a platform from a google-ads.yaml configuration file"""
        client = GoogleAdsClient.load_from_storage(path)
        return cls(client, max_parallel_accounts=max_parallel_accounts)

    def select_accounts(self, predicate: str) -> List[AccountSession]:
        """Client accounts carrying a label that matches the predicate"""
        label_rows = self._search(LABELS_QUERY.format(predicate=predicate))
        labels = [row.label.resource_name for row in label_rows]
        if not labels:
            logger.info(f"No labels matched: {predicate}")
            return []

        label_list = ", ".join(f"'{label}'" for label in labels)
        member_rows = self._search(LABELED_CLIENTS_QUERY.format(labels=label_list))

        customer_ids = []
        for row in member_rows:
            customer_id = row.customer_client_label.client_customer.split('/')[-1]
            if customer_id not in customer_ids:
                customer_ids.append(customer_id)

        names = self._client_names() if customer_ids else {}
        return [AccountSession(self.client, customer_id, names.get(customer_id, '')) for customer_id in customer_ids]

    def _client_names(self) -> Dict[str, str]:
        try:
            rows = self._search(CLIENT_NAMES_QUERY)
            return {str(row.customer_client.id): row.customer_client.descriptive_name for row in rows}
        except GoogleAdsException as error:
            logger.warning(f"Could not fetch client account names: {error.failure}")
            return {}

    def _search(self, query: str) -> Iterable:
        service = self.client.get_service("GoogleAdsService")
        return service.search(customer_id=self.manager_customer_id, query=query)
