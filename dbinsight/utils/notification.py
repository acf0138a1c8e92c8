"""
Alert and report notifications over Slack and Telegram
"""

import os
import re
import requests
from typing import List, Optional

from ..config.settings import AlertSettings
from ..database.models import ComparisonReport, DatabaseReport, MonitoringAlert, Severity
from .log import get_logger


TYPE_EMOJI = {
    "SUCCESS": "✅",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "INFO": "ℹ️"
}

SEVERITY_TYPE = {
    Severity.LOW: "INFO",
    Severity.MEDIUM: "WARNING",
    Severity.HIGH: "ERROR",
    Severity.CRITICAL: "ERROR"
}

TELEGRAM_MAX_LENGTH = 4000


class NotificationManager:
    """Manage notifications across different channels"""

    def __init__(self, settings: Optional[AlertSettings] = None):
        settings = settings or AlertSettings()
        self.enabled = settings.enable_alerts
        self.channels = {
            'telegram': {
                'token': settings.telegram_token or os.getenv('TELEGRAM_BOT_TOKEN'),
                'chat_id': settings.telegram_chat_id or os.getenv('TELEGRAM_CHAT_ID')
            },
            'slack': {
                'webhook': settings.slack_webhook or os.getenv('SLACK_WEBHOOK')
            }
        }
        self.logger = get_logger(__name__)

    def configured_channels(self) -> List[str]:
        channels = []
        if self.channels['slack']['webhook']:
            channels.append('slack')
        if self.channels['telegram']['token'] and self.channels['telegram']['chat_id']:
            channels.append('telegram')
        return channels

    def send_notification(self, message: str, channel: str = 'all',
                          notification_type: str = "INFO") -> bool:
        """Send a message to one channel, or to every configured channel with 'all'"""
        if not self.enabled:
            self.logger.info("Notifications disabled, skipping")
            return False

        if channel == 'telegram':
            return self._send_telegram(message, notification_type)
        elif channel == 'slack':
            return self._send_slack(message, notification_type)
        elif channel == 'all':
            channels = self.configured_channels()
            if not channels:
                self.logger.warning("No notification channel configured")
                return False
            results = [self.send_notification(message, ch, notification_type) for ch in channels]
            return all(results)

        self.logger.warning(f"Unknown notification channel: {channel}")
        return False

    def notify_alerts(self, alerts: List[MonitoringAlert], database_name: str = "",
                      channel: str = 'all') -> bool:
        """Send one message listing triggered alerts; nothing is sent for an empty list"""
        if not alerts:
            return True

        worst = max((alert.severity for alert in alerts), key=lambda s: s.rank)
        return self.send_notification(self.format_alerts(alerts, database_name),
                                      channel, SEVERITY_TYPE[worst])

    def send_report_digest(self, report: DatabaseReport, channel: str = 'all') -> bool:
        notification_type = "SUCCESS" if report.summary.health_score >= 0.8 else "WARNING"
        return self.send_notification(self.format_report_digest(report), channel, notification_type)

    def format_alerts(self, alerts: List[MonitoringAlert], database_name: str = "") -> str:
        lines = [f"*Database alerts{' for ' + database_name if database_name else ''}*"]
        for alert in alerts:
            lines.append(f"[{alert.severity.value.upper()}] {alert.name}: {alert.message}")
        return "\n".join(lines)

    def format_report_digest(self, report: DatabaseReport) -> str:
        """Plain-text summary of a report"""
        summary = report.summary
        lines = [
            f"*Database Analysis Report - {report.database_name}*",
            f"Analysis Date: {report.analysis_time.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            f"Tables: {summary.total_tables} | Columns: {summary.total_columns} | Rows: {summary.total_rows}",
            f"Size: {summary.total_size}",
            f"Health: {summary.health_score:.2f} | Complexity: {summary.complexity_score:.2f}",
        ]

        if report.failed_tables:
            lines.append(f"Failed tables: {', '.join(report.failed_tables)}")

        urgent = [i for i in report.insights if i.severity >= Severity.HIGH]
        if urgent:
            lines.append("")
            lines.append("Top issues:")
            for insight in urgent[:5]:
                lines.append(f"- [{insight.severity.value}] {insight.title}: {insight.description}")
            if len(urgent) > 5:
                lines.append(f"... and {len(urgent) - 5} more")

        if report.recommendations:
            lines.append("")
            lines.append("Recommendations:")
            lines.extend(f"- {rec}" for rec in report.recommendations)

        return "\n".join(lines)

    def format_comparison(self, comparison: ComparisonReport) -> str:
        summary = comparison.summary
        lines = [
            f"*Changes since {comparison.old_analysis_time.strftime('%Y-%m-%d %H:%M:%S')}*",
            f"Total: {summary.total_changes} (schema {summary.schema_changes}, data {summary.data_changes})",
            f"Impact: high {summary.high_impact}, medium {summary.medium_impact}, low {summary.low_impact}",
        ]
        for change in comparison.changes:
            lines.append(f"- [{change.impact}] {change.description}")
        return "\n".join(lines)

    def _send_telegram(self, message: str, notification_type: str = "INFO") -> bool:
        """Send Telegram notification with MarkdownV2, retrying as plain text"""
        token = self.channels['telegram']['token']
        chat_id = self.channels['telegram']['chat_id']
        if not token or not chat_id:
            self.logger.warning("Telegram configuration missing")
            return False

        url = f"https://api.telegram.org/bot{token}/sendMessage"
        final_message = f"{TYPE_EMOJI.get(notification_type, TYPE_EMOJI['INFO'])} {message}"

        if len(final_message) > TELEGRAM_MAX_LENGTH:
            final_message = final_message[:TELEGRAM_MAX_LENGTH] + "\n\n... (truncated)"

        payload = {
            "chat_id": chat_id,
            "text": self._escape_telegram_markdown(final_message),
            "parse_mode": "MarkdownV2"
        }

        try:
            response = requests.post(url, data=payload, timeout=10)
            if response.status_code != 200:
                self.logger.warning(f"Telegram notification failed: {response.text}")
                payload.pop("parse_mode")
                payload["text"] = final_message
                response = requests.post(url, data=payload, timeout=10)
            return response.status_code == 200
        except requests.RequestException as e:
            self.logger.error(f"Telegram notification error: {e}")
            return False

    def _send_slack(self, message: str, notification_type: str = "INFO") -> bool:
        webhook = self.channels['slack']['webhook']
        if not webhook:
            self.logger.warning("Slack configuration missing")
            return False

        final_message = f"{TYPE_EMOJI.get(notification_type, TYPE_EMOJI['INFO'])} {message}"
        payload = {
            "text": final_message,
            "username": "DB Insight",
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": final_message
                    }
                }
            ]
        }

        try:
            response = requests.post(webhook, json=payload, timeout=10)
            if response.status_code != 200:
                self.logger.warning(f"Slack notification failed: {response.text}")
                return False
            return True
        except requests.RequestException as e:
            self.logger.error(f"Slack notification error: {e}")
            return False

    def _escape_telegram_markdown(self, text: str) -> str:
        """Escape MarkdownV2 special characters outside code blocks"""
        escape_chars = r'_*\[\]()~`>#+-=|{}.!'
        parts = re.split(r'(```[\s\S]*?```)', text)
        for i, part in enumerate(parts):
            if not part.startswith('```'):
                parts[i] = re.sub(f'([{re.escape(escape_chars)}])', r'\\\1', part)
        return ''.join(parts)
