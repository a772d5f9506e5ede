"""
Report Aggregator - Merges account scan results for a label group and emails the summary
"""

import html
import logging
import re
from datetime import datetime
from typing import Callable, List, Optional

from disapproval_monitor.config import MonitorConfig
from disapproval_monitor.models import (
    AccountScanResult,
    ExecutionResult,
    GroupReport,
    MergedReport,
    ReportTotals,
)
from disapproval_monitor.routing import RoutingContext, resolve_cc, resolve_recipient


logger = logging.getLogger(__name__)

UNLABELED_GROUP = '(Unlabeled Group)'

TABLE_OPEN = '<table width="100%" cellpadding="6" cellspacing="0" style="border-collapse:collapse;border:1px solid #ddd;">'
ROW_OPEN = '<tr style="border-top:1px solid #eee;">'

AD_COLUMNS = ('Type', 'Campaign', 'Ad group', 'Status', 'Policy topics', 'Reasons')
KEYWORD_COLUMNS = ('Text', 'Match', 'Campaign', 'Ad group', 'Status', 'Policy topics', 'Reasons')
ASSET_COLUMNS = ('Type', 'Name', 'Status', 'Policy topics', 'Reasons')


class ReportError(Exception):
    """Raised when a report cannot be delivered"""


class ReportAggregator:
    """Builds and delivers one report per label group"""

    def __init__(
        self,
        config: MonitorConfig,
        mailer=None,
        preview: bool = True,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config
        self.mailer = mailer
        self.preview = preview
        self.clock = clock

    # === Main Entry Point ===

    def __call__(self, results: List[ExecutionResult], context: str) -> GroupReport:
        """Aggregator entry point used by the platform fan-out"""
        ctx = RoutingContext.from_json(context)

        recipient = resolve_recipient(ctx.to, self.config.default_to)
        if not recipient:
            raise ReportError("Failed to send email: no recipient")

        cc = resolve_cc(ctx.cc)
        label = ctx.label or UNLABELED_GROUP

        merged = self.merge(label, results)
        html_body = self.render_html(merged, self.clock())
        subject = self.build_subject(label, merged.totals)

        report = GroupReport(
            label=label,
            recipient=recipient,
            cc=cc,
            subject=subject,
            html_body=html_body,
            text_body=strip_html(html_body),
            totals=merged.totals
        )
        self._deliver(report)
        return report

    # === Merge ===

    @staticmethod
    def merge(label: str, results: List[ExecutionResult]) -> MergedReport:
        """Fold successful worker results; failed accounts are left out"""
        merged = MergedReport(label=label)

        for result in results:
            if not result.succeeded:
                continue

            try:
                row = AccountScanResult.from_json(result.return_value)
            except (TypeError, ValueError) as error:
                logger.debug(f"Dropping unreadable result for {result.customer_id}: {error}")
                continue

            totals = row.totals
            merged.totals.accounts += 1
            merged.totals.ads += totals['ads']
            merged.totals.keywords += totals['keywords']
            merged.totals.assets += totals['assets']
            merged.rows.append(row)

        return merged

    # === Rendering ===

    def build_subject(self, label: str, totals: ReportTotals) -> str:
        status_flag = 'FOUND' if totals.issues > 0 else 'NONE'
        prefix = self.config.subject_prefix or 'Disapprovals'
        return (
            f"{prefix} — {label} — {status_flag} "
            f"(Ads:{totals.ads}, KW:{totals.keywords}, Assets:{totals.assets})"
        )

    def render_html(self, merged: MergedReport, sent_at: datetime) -> str:
        """Render the HTML body; output depends only on the arguments"""
        totals = merged.totals
        parts = ['<div style="font-family:Arial,Helvetica,sans-serif;font-size:13px;color:#222;">']
        parts.append(
            f'<h2 style="margin:0 0 8px 0;">{escape_html(self.config.subject_prefix)} — '
            f'{escape_html(merged.label)}</h2>'
        )
        parts.append(
            '<p style="margin:4px 0 12px 0;">'
            f'Accounts scanned: <b>{totals.accounts}</b> | '
            f'Ads: <b>{totals.ads}</b> | '
            f'Keywords: <b>{totals.keywords}</b> | '
            f'Assets: <b>{totals.assets}</b>'
            '</p>'
        )

        if not merged.rows:
            parts.append(f'<p>No accounts matched the label "<b>{escape_html(merged.label)}</b>".</p>')

        for row in merged.rows:
            parts.append(f'<h3 style="margin:16px 0 6px 0;">{escape_html(row.account)}</h3>')
            parts.extend(self._section('Ads', AD_COLUMNS, [
                (ad.type, ad.campaign, ad.ad_group, ad.status, ', '.join(ad.topics), '; '.join(ad.reasons))
                for ad in row.ads
            ]))
            parts.extend(self._section('Keywords', KEYWORD_COLUMNS, [
                (kw.text, kw.match_type, kw.campaign, kw.ad_group, kw.status, ', '.join(kw.topics), '; '.join(kw.reasons))
                for kw in row.keywords
            ]))
            parts.extend(self._section('Assets / Extensions (best-effort)', ASSET_COLUMNS, [
                (asset.asset_type, asset.name, asset.status, ', '.join(asset.topics), '; '.join(asset.reasons))
                for asset in row.assets
            ]))

        preview_note = ' (PREVIEW MODE – no changes applied)' if self.preview else ''
        parts.append(
            '<p style="margin-top:18px;color:#666;font-size:12px;">'
            f'Sent {sent_at.strftime("%Y-%m-%d %H:%M:%S")}{preview_note}</p>'
        )
        parts.append('</div>')
        return ''.join(parts)

    def _section(self, title: str, columns: tuple, rows: list) -> List[str]:
        if not rows and not self.config.include_zero_row_sections:
            return []

        parts = [_section_header(title, len(rows))]
        if not rows:
            parts.append(_empty_note())
            return parts

        header = ''.join(f'<th align="left">{column}</th>' for column in columns)
        parts.append(TABLE_OPEN)
        parts.append(f'<thead><tr style="background:#f7f7f7">{header}</tr></thead>')
        parts.append('<tbody>')
        for cells in rows:
            parts.append(ROW_OPEN + ''.join(_td(cell) for cell in cells) + '</tr>')
        parts.append('</tbody></table>')
        return parts

    # === Delivery ===

    def _deliver(self, report: GroupReport) -> None:
        if self.config.log_summary:
            cc_note = f" (cc {report.cc})" if report.cc else ''
            logger.info(f'[{report.label}] Emailing "{report.subject}" to: {report.recipient}{cc_note}')

        if self.preview:
            logger.info("[PREVIEW] Skipped sending email.")
            return

        if self.mailer is None:
            raise ReportError("Failed to send email: no mailer configured")

        self.mailer.send(
            to=report.recipient,
            subject=report.subject,
            text_body=report.text_body,
            html_body=report.html_body,
            cc=report.cc,
            from_name=self.config.from_name
        )
        report.sent = True


# === Helpers ===

def escape_html(value: Optional[object]) -> str:
    if value is None:
        return ''
    return html.escape(str(value), quote=False)


def strip_html(markup: str) -> str:
    """Plain-text fallback: drop tags and collapse whitespace"""
    return re.sub(r'\s+', ' ', re.sub(r'<[^>]+>', ' ', str(markup))).strip()


def _section_header(title: str, count: int) -> str:
    return (
        f'<h4 style="margin:12px 0 6px 0;">{escape_html(title)} '
        f'<span style="font-weight:normal;color:#555">({count})</span></h4>'
    )


def _empty_note() -> str:
    return '<div style="padding:8px 10px;border:1px dashed #ddd;background:#fafafa;color:#777;">None</div>'


def _td(value: Optional[object]) -> str:
    return f'<td style="vertical-align:top;border-top:1px solid #eee;">{escape_html(value)}</td>'
