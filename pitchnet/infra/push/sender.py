"""Push notification dispatch via FCM (Firebase Cloud Messaging).

Dispatch is best effort: the device lookup happens inline, the network send
runs in a worker thread as a background task, and every failure is logged and
swallowed so it can never fail the request that produced the notification.
"""
import asyncio
import json
import logging
import os
from typing import Any, Optional

from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.models import PushPayload
from pitchnet.infra.db.repositories.device_repo import DeviceRepository
from pitchnet.settings import settings

logger = logging.getLogger(__name__)

_firebase_app = None
_pending: set[asyncio.Task] = set()


def _get_firebase_app():
    """Lazy-init Firebase default app. Returns None if push disabled or no credentials."""
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app
    if not settings.push_enabled:
        return None
    cred_path = settings.google_application_credentials or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if not cred_path:
        logger.debug("Push disabled: no GOOGLE_APPLICATION_CREDENTIALS")
        return None
    try:
        import firebase_admin
        from firebase_admin import credentials
        _firebase_app = firebase_admin.initialize_app(credentials.Certificate(cred_path))
        return _firebase_app
    except Exception as e:
        logger.warning("Firebase init failed (push disabled): %s", e)
        return None


def build_message(tokens: list[str], payload: PushPayload, badge_count: int):
    """Multicast message: data always, visible alert only when the payload has a body."""
    from firebase_admin import messaging

    # FCM data payload: all values must be strings
    data = {
        "payload": json.dumps(payload.data, default=str),
        "badgeCount": str(badge_count),
    }
    notification = None
    if payload.body:
        notification = messaging.Notification(title=payload.title, body=payload.body)
    return messaging.MulticastMessage(
        tokens=tokens,
        data=data,
        notification=notification,
        apns=messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(badge=badge_count))),
    )


def _send(app: Any, message: Any, user_id: str) -> None:
    from firebase_admin import messaging

    try:
        response = messaging.send_each_for_multicast(message, app=app)
    except Exception as e:
        logger.warning("Push send failed for user %s: %s", user_id, e)
        return
    if response.failure_count:
        for token, result in zip(message.tokens, response.responses):
            if not result.success:
                logger.warning("Push send failed for token %s...: %s", token[:20], result.exception)
    logger.debug("Push sent to user %s (%s ok, %s failed)", user_id, response.success_count, response.failure_count)


def _spawn(user_id: str, app: Any, message: Any) -> None:
    task = asyncio.create_task(asyncio.to_thread(_send, app, message, user_id))
    _pending.add(task)
    task.add_done_callback(_pending.discard)


async def wait_for_pending(timeout: Optional[float] = None) -> None:
    """Let in-flight sends finish (used on shutdown)."""
    if _pending:
        await asyncio.wait(list(_pending), timeout=timeout)


class PushDispatcher:
    """Fans a rendered notification out to every registered device of a user."""

    def __init__(self, devices: DeviceRepository):
        self.devices = devices

    async def dispatch(self, user: User, payload: PushPayload, badge_count: int) -> None:
        """Send to all of the user's devices. No-op when push is off for them or they have no devices."""
        try:
            if not user.push_notifications_enabled:
                logger.debug("Push skipped for user %s: disabled in preferences", user.id)
                return
            app = _get_firebase_app()
            if app is None:
                return
            tokens = await self.devices.list_tokens_by_user(user.id)
            if not tokens:
                logger.debug("No push tokens for user %s", user.id)
                return
            _spawn(user.id, app, build_message(tokens, payload, badge_count))
        except Exception as e:
            logger.warning("Push dispatch failed for user %s: %s", user.id, e)
