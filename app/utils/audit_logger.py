"""
Usage audit logging for the Recipe Cleaner API.
Writes structured JSON lines for spend, breaker and quota events so that
cost exposure can be reconstructed after the fact.
"""

import logging
import json
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from pathlib import Path
from app.core.config import settings

class UsageAuditLogger:
    """Structured governance event logging"""

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir or settings.AUDIT_LOG_DIR)
        self.audit_logger = logging.getLogger('usage_audit')
        self.audit_logger.setLevel(logging.INFO)
        self._configured = False

    def _ensure_handler(self):
        """Attach the file handler on first use so importing never touches the filesystem"""
        if self._configured or self.audit_logger.handlers:
            self._configured = True
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.log_dir / "usage_events.log")
        formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "event": %(message)s}',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        self.audit_logger.addHandler(handler)
        self._configured = True

    def log_usage_event(self, event_type: str, subject: Optional[str], details: Dict[str, Any], severity: str = "INFO"):
        """
        Log a governance event with structured data

        Args:
            event_type: Type of event (e.g., 'spend_recorded', 'quota_denied')
            subject: User id or fingerprint the event belongs to, None for system events
            details: Additional event details
            severity: Log severity level
        """
        if not settings.LOG_USAGE_EVENTS:
            return

        self._ensure_handler()
        event_data = {
            "event_type": event_type,
            "subject": subject,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
            "source": "recipe_cleaner"
        }

        log_message = json.dumps(event_data, default=str)

        if severity == "WARNING":
            self.audit_logger.warning(log_message)
        else:
            self.audit_logger.info(log_message)

    def log_spend_recorded(self, amount: float, daily_total: float, monthly_total: float, operation: str):
        self.log_usage_event(
            event_type="spend_recorded",
            subject=None,
            details={
                "amount": amount,
                "operation": operation,
                "daily_total": daily_total,
                "monthly_total": monthly_total
            }
        )

    def log_breaker_tripped(self, daily_total: float, monthly_total: float):
        """Spending breaker moved from open to paused"""
        self.log_usage_event(
            event_type="spending_breaker_tripped",
            subject=None,
            details={
                "daily_total": daily_total,
                "monthly_total": monthly_total,
                "daily_limit": settings.DAILY_SPENDING_LIMIT,
                "monthly_limit": settings.MONTHLY_SPENDING_LIMIT,
                "action": "billable_requests_refused"
            },
            severity="WARNING"
        )

    def log_quota_denied(self, subject: Optional[str], reason: Optional[str], ip: Optional[str]):
        self.log_usage_event(
            event_type="quota_denied",
            subject=subject,
            details={"reason": reason, "ip": ip}
        )

    def log_extraction_completed(self, subject: Optional[str], source_kind: str, path: str,
                                 cost: float, issues: list, repaired: bool):
        self.log_usage_event(
            event_type="extraction_completed",
            subject=subject,
            details={
                "source_kind": source_kind,
                "path": path,
                "cost": cost,
                "issues": issues,
                "repaired": repaired
            }
        )

# Global audit logger instance
audit_logger = UsageAuditLogger()
