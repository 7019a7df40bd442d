"""
In-app notification delivery (fire-and-forget).

Notifications are written through a dedicated short-lived session so a failed
insert can never roll back the caller's work.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from ..models import Notification, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    message: str
    type: str = "system"
    priority: str = "medium"
    related_model: str | None = None
    related_id: UUID | None = None
    action_url: str | None = None


def active_recipients(db: Session, roles: Iterable[str]) -> list[User]:
    """Active users holding one of the given roles."""
    return (
        db.query(User)
        .filter(
            User.role.in_(tuple(roles)),
            User.is_active.is_(True),
        )
        .all()
    )


def find_user_by_name(db: Session, name: str | None) -> User | None:
    if not name:
        return None
    return db.query(User).filter(User.name == name, User.is_active.is_(True)).first()


class Notifier:
    """Batch-inserts one Notification row per recipient."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def notify_users(self, user_ids: Iterable[UUID], payload: NotificationPayload) -> int:
        recipients = list(dict.fromkeys(user_ids))
        if not recipients:
            return 0

        db = self._session_factory()
        try:
            db.add_all(
                [
                    Notification(
                        user_id=user_id,
                        title=payload.title,
                        message=payload.message,
                        type=payload.type,
                        priority=payload.priority,
                        related_model=payload.related_model,
                        related_id=payload.related_id,
                        action_url=payload.action_url,
                    )
                    for user_id in recipients
                ]
            )
            db.commit()
            return len(recipients)
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Notification delivery failed ({payload.title}): {e}", exc_info=True)
            return 0
        finally:
            db.close()

    def notify_user(self, user_id: UUID, payload: NotificationPayload) -> int:
        return self.notify_users([user_id], payload)
