"""Team notifications.

The engine and the workflow runner notify floor teams through anything with
an async ``notify(team, message, **context)``. The default implementation logs
the notification and keeps it in memory so the API and tests can read it back.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from core.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Notification:
    team: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team": self.team,
            "message": self.message,
            "context": self.context,
            "sent_at": self.sent_at.isoformat(),
        }


class Notifier(Protocol):
    async def notify(self, team: str, message: str, **context: Any) -> None:
        ...


class LoggingNotifier:
    """Logs each notification and keeps the most recent ones."""

    def __init__(self, max_history: int = 500):
        self.max_history = max_history
        self.sent: List[Notification] = []

    async def notify(self, team: str, message: str, **context: Any) -> None:
        notification = Notification(team=team, message=message, context=context)
        self.sent.append(notification)
        if len(self.sent) > self.max_history:
            del self.sent[: len(self.sent) - self.max_history]
        logger.info(f"Notify {team}: {message}", extra_fields=context)

    def for_team(self, team: Optional[str] = None) -> List[Notification]:
        if team is None:
            return list(self.sent)
        return [n for n in self.sent if n.team == team]
