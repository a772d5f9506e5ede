#!/usr/bin/env python3
"""
Disapproval Monitor - Emails per-label reports of disapproved ads, keywords and assets
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from disapproval_monitor.ads_platform import GoogleAdsPlatform
from disapproval_monitor.config import ConfigError, MonitorConfig, load_config
from disapproval_monitor.dispatcher import GroupDispatcher
from disapproval_monitor.mailer import GmailMailer
from disapproval_monitor.models import GroupOutcome
from disapproval_monitor.report import ReportAggregator
from disapproval_monitor.scanner import AccountScanner


logger = logging.getLogger(__name__)

console = Console()


async def run(config: MonitorConfig, platform, mailer=None, preview: bool = True) -> List[GroupOutcome]:
    """Process every label group in order, returns one outcome per group"""
    config.validate()

    scanner = AccountScanner(config)
    aggregator = ReportAggregator(config, mailer=mailer, preview=preview)
    dispatcher = GroupDispatcher(config, platform, scanner, aggregator)

    outcomes = []
    for group in config.label_recipients:
        report = await dispatcher.dispatch(group)

        if report is None:
            outcomes.append(GroupOutcome(label=group.label, status='skipped'))
        else:
            status = 'sent' if report.sent else 'preview'
            outcomes.append(GroupOutcome(label=report.label, status=status, report=report))

    return outcomes


def print_summary(outcomes: List[GroupOutcome], preview: bool) -> None:
    """Print final summary table"""
    table = Table(title="Disapproval Scan Results", show_header=True, header_style="bold cyan")
    table.add_column("Label", style="cyan")
    table.add_column("Recipient")
    table.add_column("Accounts", justify="right")
    table.add_column("Ads", justify="right", style="red")
    table.add_column("Keywords", justify="right", style="red")
    table.add_column("Assets", justify="right", style="red")
    table.add_column("Status", style="green")

    for outcome in outcomes:
        report = outcome.report
        if report is None:
            table.add_row(outcome.label, "-", "-", "-", "-", "-", "[yellow]skipped[/yellow]")
            continue
        table.add_row(
            outcome.label,
            report.recipient,
            f"{report.totals.accounts:,}",
            f"{report.totals.ads:,}",
            f"{report.totals.keywords:,}",
            f"{report.totals.assets:,}",
            outcome.status
        )

    console.print(table)

    if preview:
        console.print("\n[bold yellow]PREVIEW MODE:[/bold yellow] no emails were sent. Run with --no-preview to send.")


def _select_groups(config: MonitorConfig, labels: Optional[Sequence[str]]) -> MonitorConfig:
    if not labels:
        return config
    wanted = set(labels)
    groups = tuple(group for group in config.label_recipients if group.label in wanted)
    return replace(config, label_recipients=groups)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    load_dotenv()

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    parser = argparse.ArgumentParser(description='Email per-label reports of policy-disapproved ads, keywords and assets')
    parser.add_argument('--config', type=str, default=os.getenv('MONITOR_CONFIG', 'config.json'),
                        help='Path to the JSON config file (default: config.json)')
    parser.add_argument('--label', action='append', dest='labels',
                        help='Only process this label (repeatable)')
    parser.add_argument('--preview', dest='preview', action='store_true', help='Build reports but don\'t send email')
    parser.add_argument('--no-preview', dest='preview', action='store_false', help='Actually send email')
    parser.set_defaults(preview=None)
    args = parser.parse_args(argv)

    # CLI args override env var
    if args.preview is None:
        preview = os.getenv('PREVIEW', 'true').lower() == 'true'
    else:
        preview = args.preview

    try:
        config = _select_groups(load_config(args.config), args.labels)
        config.validate()
    except ConfigError as error:
        console.print(f"[red]Configuration error: {error}[/red]")
        return 2

    platform = GoogleAdsPlatform.from_storage(
        os.getenv('GOOGLE_ADS_CONFIGURATION_FILE_PATH'),
        max_parallel_accounts=config.max_parallel_accounts
    )

    mailer = None
    if not preview:
        mailer = GmailMailer(
            credentials_path=os.getenv('GMAIL_CREDENTIALS_PATH', 'credentials.json'),
            token_path=os.getenv('GMAIL_TOKEN_PATH', 'token.json')
        )
        mailer.authenticate()

    logger.info(f"Starting disapproval scan for {len(config.label_recipients)} label groups (preview: {preview})")
    outcomes = asyncio.run(run(config, platform, mailer=mailer, preview=preview))
    print_summary(outcomes, preview)
    return 0


if __name__ == "__main__":
    sys.exit(main())
