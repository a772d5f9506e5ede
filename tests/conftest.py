"""
Shared test fixtures for Disapproval Monitor tests
"""

from datetime import datetime
from typing import Dict, List, Optional, Set

import pytest

from disapproval_monitor.ads_platform import AdsPlatform
from disapproval_monitor.config import MonitorConfig
from disapproval_monitor.dispatcher import label_predicate
from disapproval_monitor.models import LabelGroup


FIXED_NOW = datetime(2026, 10, 18, 7, 30, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


# === Mock Entity Handles ===

class MockEvidence:
    """Evidence exposing text through a method only"""
    def __init__(self, text: str):
        self._text = text

    def get_text(self):
        return self._text


class MockTopic:
    """Mock for a policy topic entry"""
    def __init__(self, topic: Optional[str] = None, evidences: Optional[List] = None,
                 topic_error: bool = False, evidences_error: bool = False):
        self._topic = topic
        self._evidences = evidences or []
        self._topic_error = topic_error
        self._evidences_error = evidences_error

    def get_topic(self):
        if self._topic_error:
            raise RuntimeError("topic unavailable")
        return self._topic

    def get_evidences(self):
        if self._evidences_error:
            raise RuntimeError("evidence unavailable")
        return self._evidences


class MockAd:
    """Mock for an ad handle"""
    def __init__(self, status: Optional[str], ad_type: str = 'RESPONSIVE_SEARCH_AD',
                 campaign: str = 'Brand', ad_group: str = 'Core', topics: Optional[List] = None,
                 status_error: bool = False):
        self._status = status
        self._type = ad_type
        self._campaign = campaign
        self._ad_group = ad_group
        self._topics = topics or []
        self._status_error = status_error

    def get_type(self):
        return self._type

    def get_campaign_name(self):
        return self._campaign

    def get_ad_group_name(self):
        return self._ad_group

    def get_policy_approval_status(self):
        if self._status_error:
            raise RuntimeError("policy status unavailable")
        return self._status

    def get_policy_topics(self):
        return self._topics


class MockKeyword:
    """Mock for a keyword handle"""
    def __init__(self, status: Optional[str], text: str = 'running shoes', match_type: str = 'BROAD',
                 campaign: str = 'Brand', ad_group: str = 'Core', topics: Optional[List] = None,
                 status_error: bool = False):
        self._status = status
        self._text = text
        self._match_type = match_type
        self._campaign = campaign
        self._ad_group = ad_group
        self._topics = topics or []
        self._status_error = status_error

    def get_text(self):
        return self._text

    def get_match_type(self):
        return self._match_type

    def get_campaign_name(self):
        return self._campaign

    def get_ad_group_name(self):
        return self._ad_group

    def get_approval_status(self):
        if self._status_error:
            raise RuntimeError("approval status unavailable")
        return self._status

    def get_policy_topics(self):
        return self._topics


class MockAsset:
    """Mock for an asset handle"""
    def __init__(self, status: Optional[str], asset_type: str = 'SITELINK', name: str = 'Contact us',
                 topics: Optional[List] = None, status_error: bool = False):
        self._status = status
        self._type = asset_type
        self._name = name
        self._topics = topics or []
        self._status_error = status_error

    def get_type(self):
        return self._type

    def get_name(self):
        return self._name

    def get_policy_approval_status(self):
        if self._status_error:
            raise RuntimeError("asset policy unavailable")
        return self._status

    def get_policy_topics(self):
        return self._topics


# === Mock Accounts and Platform ===

class MockAccount:
    """Mock for a client account session"""
    def __init__(self, customer_id: str, name: str, ads: List = None, keywords: List = None,
                 assets: List = None, failing_categories: Set[str] = None, fail_all: bool = False):
        self.customer_id = customer_id
        self.name = name
        self._entities = {
            'ads': ads or [],
            'keywords': keywords or [],
            'assets': assets or []
        }
        self._failing = failing_categories or set()
        self._fail_all = fail_all
        self.requested_limits: Dict[str, int] = {}

    @property
    def display_name(self) -> str:
        if self._fail_all:
            raise RuntimeError("account unavailable")
        return f"{self.name} ({self.customer_id})"

    def _fetch(self, category: str, limit: int) -> List:
        self.requested_limits[category] = limit
        if category in self._failing:
            raise RuntimeError(f"{category} not supported on this account")
        return self._entities[category][:limit]

    def ads(self, limit: int):
        return self._fetch('ads', limit)

    def keywords(self, limit: int):
        return self._fetch('keywords', limit)

    def assets(self, limit: int):
        return self._fetch('assets', limit)


class MockPlatform(AdsPlatform):
    """Platform whose account selection is a fixed label -> accounts mapping"""
    def __init__(self, accounts_by_label: Dict[str, List[MockAccount]], max_parallel_accounts: int = 4):
        super().__init__(max_parallel_accounts)
        self._accounts = {label_predicate(label): accounts for label, accounts in accounts_by_label.items()}
        self.predicates: List[str] = []

    def select_accounts(self, predicate: str) -> List[MockAccount]:
        self.predicates.append(predicate)
        return list(self._accounts.get(predicate, []))


class MockMailer:
    """Records sent messages instead of sending them"""
    def __init__(self, fail: bool = False):
        self.sent: List[Dict] = []
        self._fail = fail

    def send(self, to, subject, text_body, html_body, cc='', from_name=''):
        if self._fail:
            raise RuntimeError("mail transport down")
        message = {
            'to': to,
            'subject': subject,
            'text_body': text_body,
            'html_body': html_body,
            'cc': cc,
            'from_name': from_name
        }
        self.sent.append(message)
        return message


# === Mock Gmail API Service ===

class MockExecute:
    """Mock for the .execute() call that returns stored data"""
    def __init__(self, data):
        self._data = data

    def execute(self):
        return self._data


class MockMessages:
    """Mock for users().messages()"""
    def __init__(self, sent: List[Dict]):
        self._sent = sent

    def send(self, userId: str, body: Dict):
        self._sent.append(body)
        return MockExecute({'id': f'msg_{len(self._sent)}', 'labelIds': ['SENT']})


class MockUsers:
    """Mock for service.users()"""
    def __init__(self, email: str, sent: List[Dict]):
        self._email = email
        self._messages = MockMessages(sent)

    def getProfile(self, userId: str):
        return MockExecute({'emailAddress': self._email})

    def messages(self):
        return self._messages


class MockGmailService:
    """Mock Gmail API service that records sent messages"""
    def __init__(self, email: str = 'monitor@example.com'):
        self._email = email
        self.sent_messages: List[Dict] = []

    def users(self):
        return MockUsers(self._email, self.sent_messages)


# === Helpers ===

def make_config(**overrides) -> MonitorConfig:
    values = {
        'label_recipients': (LabelGroup(label='Managed by Sam', to='sam@example.com'),),
        'default_to': '',
        'from_name': 'Disapproval Monitor',
        'subject_prefix': '⚠ Disapprovals',
        'max_rows_per_section': 5000,
        'include_zero_row_sections': True,
        'log_summary': True,
        'max_parallel_accounts': 4
    }
    values.update(overrides)
    return MonitorConfig(**values)


def make_sam_account() -> MockAccount:
    """Account with 2 disapproved ads, 1 disapproved keyword and no disapproved assets"""
    return MockAccount(
        customer_id='123-456-7890',
        name='Sam Shoes',
        ads=[
            MockAd('DISAPPROVED', campaign='Brand', topics=[MockTopic('TRADEMARKS', [MockEvidence('Nike')])]),
            MockAd('APPROVED'),
            MockAd('APPROVED_LIMITED', ad_type='EXPANDED_TEXT_AD', campaign='Generic',
                   topics=[MockTopic('ALCOHOL'), MockTopic('ALCOHOL')]),
        ],
        keywords=[
            MockKeyword('DISAPPROVED', text='cheap replica shoes',
                        topics=[MockTopic('COUNTERFEIT', [MockEvidence('replica')])]),
            MockKeyword('APPROVED', text='running shoes'),
        ],
        assets=[
            MockAsset('APPROVED'),
            MockAsset(None, name='Call us'),
        ]
    )


# === Fixtures ===

@pytest.fixture
def config() -> MonitorConfig:
    """Default config with a single label group"""
    return make_config()


@pytest.fixture
def sam_account() -> MockAccount:
    return make_sam_account()


@pytest.fixture
def mock_mailer() -> MockMailer:
    return MockMailer()


@pytest.fixture
def mock_gmail_service() -> MockGmailService:
    return MockGmailService()
