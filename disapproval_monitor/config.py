"""
Configuration loading for Disapproval Monitor
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from disapproval_monitor.models import LabelGroup


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the monitor configuration is missing or invalid"""


@dataclass(frozen=True)
class MonitorConfig:
    """Immutable run configuration, passed to every component"""
    label_recipients: Tuple[LabelGroup, ...] = ()
    default_to: str = ''
    from_name: str = 'Disapproval Monitor'
    subject_prefix: str = '⚠ Disapprovals'
    max_rows_per_section: int = 5000
    include_zero_row_sections: bool = True
    log_summary: bool = True
    max_parallel_accounts: int = 10

    def validate(self) -> None:
        if not self.label_recipients:
            raise ConfigError("LABEL_RECIPIENTS is empty - add at least one {label, to}.")


# File models. Keys follow the names used in config.json.

class LabelRecipientEntry(BaseModel):
    label: str = ''
    to: Optional[str] = None
    cc: Optional[str] = None


class ConfigFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    default_to: str = Field('', alias='DEFAULT_TO')
    from_name: str = Field('Disapproval Monitor', alias='FROM_NAME')
    subject_prefix: str = Field('⚠ Disapprovals', alias='SUBJECT_PREFIX')
    label_recipients: List[LabelRecipientEntry] = Field(default_factory=list, alias='LABEL_RECIPIENTS')
    max_rows_per_section: int = Field(5000, alias='MAX_ROWS_PER_SECTION', gt=0)
    include_zero_row_sections: bool = Field(True, alias='INCLUDE_ZERO_ROW_SECTIONS')
    log_summary: bool = Field(True, alias='LOG_SUMMARY')
    max_parallel_accounts: int = Field(10, alias='MAX_PARALLEL_ACCOUNTS', gt=0)

    def to_config(self) -> MonitorConfig:
        groups = tuple(
            LabelGroup(label=entry.label, to=entry.to or '', cc=entry.cc or '')
            for entry in self.label_recipients
        )
        return MonitorConfig(
            label_recipients=groups,
            default_to=self.default_to,
            from_name=self.from_name,
            subject_prefix=self.subject_prefix,
            max_rows_per_section=self.max_rows_per_section,
            include_zero_row_sections=self.include_zero_row_sections,
            log_summary=self.log_summary,
            max_parallel_accounts=self.max_parallel_accounts
        )


def parse_config(data: dict) -> MonitorConfig:
    """Validate a raw config mapping and build the immutable config"""
    try:
        return ConfigFile.model_validate(data).to_config()
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration: {error}") from error


def load_config(path: str) -> MonitorConfig:
    """Load configuration from a JSON file"""
    config_path = Path(path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path.absolute()}")

    try:
        data = json.loads(config_path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as error:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    config = parse_config(data)
    logger.debug(f"Loaded {len(config.label_recipients)} label groups from {config_path}")
    return config
