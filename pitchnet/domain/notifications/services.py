"""Request/response engine.

Every request family (mentor connection, pitch deck, meeting) runs through the
same exchange:

    create_request: recipient gets an actionable notification (action required),
                    actor gets a "sent" confirmation. Both land in one transaction.
    respond:        the recipient accepts or rejects exactly once. The requester
                    gets the result, the responder gets a confirmation, and an
                    accepted request runs its side effect (connection, pitch).

Duplicate pending requests are refused up front and, for concurrent writers,
by the partial unique index on pending notifications.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pitchnet.domain.accounts.models import User, UserSummary
from pitchnet.domain.common.errors import (
    AuthorizationError,
    DuplicateRequestError,
    IllegalStateError,
    InvalidDecisionError,
    NotFoundError,
    UnprocessableEntityError,
    ValidationError,
)
from pitchnet.domain.common.types import generate_id, utcnow
from pitchnet.domain.notifications.families import (
    RequestFamilyConfig,
    family_for_connection_type,
    get_family,
)
from pitchnet.domain.notifications.models import (
    ActionStatus,
    ConnectionType,
    Decision,
    Notification,
    NotificationPage,
    NotificationStatus,
    NotificationType,
    PushPayload,
    ReferenceModel,
    ReferenceObject,
    RequestFamily,
    RequestPair,
)
from pitchnet.domain.notifications.references import ReferenceResolverRegistry
from pitchnet.domain.notifications.repositories import (
    ConnectionRepository,
    NotificationRepository,
    UserRepository,
)
from pitchnet.domain.notifications.templates import CHANNEL_INBOX, CHANNEL_PUSH, TemplateResolver

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    """Push fan-out used after a commit."""

    async def dispatch(self, user: User, payload: PushPayload, badge_count: int) -> None:
        ...


def _display_name(person: Optional[Any]) -> str:
    if person is None:
        return "Someone"
    parts = [p for p in (person.name, person.surname) if p]
    return " ".join(parts) if parts else "Someone"


def notification_data(notification: Notification) -> dict[str, Any]:
    """Client-facing dict of a notification (push data and logs)."""
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "createdBy": notification.actor_id,
        "type": notification.type.value,
        "templateKey": notification.template_key.value if notification.template_key else None,
        "status": notification.status.value,
        "actionStatus": notification.action_status.value if notification.action_status else None,
        "referenceObject": {
            "reference": notification.reference.reference,
            "referenceModel": notification.reference.reference_model.value,
        } if notification.reference else None,
        "payload": {"value": notification.payload_value} if notification.payload_value else None,
        "message": notification.message,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


class RequestResponseEngine:
    """Creates requests, applies responses and serves the notification inbox."""

    def __init__(
        self,
        session: AsyncSession,
        users: UserRepository,
        notifications: NotificationRepository,
        connections: ConnectionRepository,
        references: ReferenceResolverRegistry,
        templates: TemplateResolver,
        dispatcher: Dispatcher,
        *,
        retention_days: int = 365,
        push_title: str = "Pitchnet",
        page_size: int = 20,
        max_page_size: int = 100,
    ):
        self.session = session
        self.users = users
        self.notifications = notifications
        self.connections = connections
        self.references = references
        self.templates = templates
        self.dispatcher = dispatcher
        self.retention_days = retention_days
        self.push_title = push_title
        self.page_size = page_size
        self.max_page_size = max_page_size

    # Request creation

    async def request_connection(
        self, actor: User, connection_type: ConnectionType, user_id: str
    ) -> RequestPair:
        family_config = family_for_connection_type(connection_type)
        return await self.create_request(actor, user_id, family_config.family)

    async def request_pitch_deck(self, actor: User, pitch_id: str) -> RequestPair:
        reference = ReferenceObject(reference_model=ReferenceModel.PITCH, reference=pitch_id)
        return await self.create_request(actor, None, RequestFamily.PITCH_DECK, reference=reference)

    async def request_meeting(self, actor: User, user_id: str) -> RequestPair:
        return await self.create_request(actor, user_id, RequestFamily.MEETING)

    async def create_request(
        self,
        actor: User,
        recipient_id: Optional[str],
        family: RequestFamily,
        reference: Optional[ReferenceObject] = None,
        payload: Optional[str] = None,
    ) -> RequestPair:
        """Create the recipient's actionable notification and the actor's "sent" confirmation."""
        family_config = get_family(family)

        ref = None
        if family_config.reference_model is not None:
            if reference is None or reference.reference_model != family_config.reference_model:
                raise ValidationError(
                    f"{family_config.family.value} requests must reference a {family_config.reference_model.value}"
                )
            ref = await self.references.resolve(reference, actor)
            if family_config.recipient_from_reference:
                if recipient_id is not None and recipient_id != ref.owner_id:
                    raise ValidationError("Recipient does not own the referenced object")
                recipient_id = ref.owner_id
        elif reference is not None:
            raise ValidationError(f"{family_config.family.value} requests do not take a reference")

        if not recipient_id:
            raise ValidationError("A recipient is required")
        if recipient_id == actor.id:
            raise ValidationError("You cannot send a request to yourself")
        recipient = await self.users.get_by_id(recipient_id)
        if recipient is None or not recipient.is_active:
            raise NotFoundError("User", recipient_id)
        if not family_config.roles_allowed(actor.role, recipient.role):
            raise ValidationError(
                f"A {actor.role.value} cannot send a {family_config.family.value} request to a {recipient.role.value}"
            )

        if family_config.connection_type is not None:
            existing = await self.connections.find_between(actor.id, recipient.id, family_config.connection_type)
            if existing is not None:
                raise DuplicateRequestError(f"You are already connected with user {recipient.id}")
        if ref is not None:
            await self.references.for_kind(ref.kind).ensure_requestable(ref)

        reference_obj = ref.as_reference() if ref is not None else None
        reference_key = reference_obj.key if reference_obj is not None else ""
        # A request older than the retention window is no longer shown to anyone.
        await self.notifications.expire_pending(
            actor.id, recipient.id, family_config.family, reference_key, self._since()
        )
        pending = await self.notifications.find_pending(actor.id, recipient.id, family_config.family, reference_key)
        if pending is not None:
            raise DuplicateRequestError("A request between these users is already pending")

        wording = family_config.wording_for(actor.role)
        now = utcnow()
        request = self._new_notification(
            owner=recipient,
            counterpart=actor,
            type=family_config.types.request,
            template_key=wording.request if wording else None,
            family=family_config.family,
            reference=reference_obj,
            payload_value=payload,
            action_required=True,
            now=now,
        )
        sent = self._new_notification(
            owner=actor,
            counterpart=recipient,
            type=family_config.types.sent,
            template_key=wording.sent if wording else None,
            family=family_config.family,
            reference=reference_obj,
            payload_value=payload,
            now=now,
        )
        try:
            await self.notifications.add_many([request, sent])
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Concurrent duplicate %s request from %s to %s refused", family_config.family.value, actor.id, recipient.id
            )
            raise DuplicateRequestError("A request between these users is already pending")

        logger.info(
            "%s request %s created: %s -> %s", family_config.family.value, request.id, actor.id, recipient.id
        )
        await self._push(recipient, request, actor)
        await self._push(actor, sent, recipient)
        return RequestPair(request=request, sent=sent)

    # Responses

    async def respond(
        self,
        notification_id: str,
        acting_user: User,
        decision: Decision,
        response_payload: Optional[str] = None,
    ) -> Notification:
        """Accept or reject a pending request. Returns the responder's confirmation."""
        notification = await self.notifications.get_by_id(notification_id)
        if notification is None or notification.created_at < self._since():
            raise NotFoundError("Notification", notification_id)
        if notification.user_id != acting_user.id:
            logger.warning("User %s tried to respond to notification %s they do not own", acting_user.id, notification_id)
            raise AuthorizationError("You can only respond to your own notifications")
        try:
            decision = Decision(decision)
        except ValueError:
            raise InvalidDecisionError(str(decision))
        if not notification.requires_action or notification.family is None:
            raise IllegalStateError("This notification does not require an action or was already responded to")

        family_config = get_family(notification.family)
        requester = await self.users.get_by_id(notification.actor_id) if notification.actor_id else None
        if requester is None:
            raise NotFoundError("User", notification.actor_id or "")

        ref = None
        result_payload = None
        if decision == Decision.ACCEPTED:
            if notification.reference is not None:
                ref = await self.references.resolve(notification.reference, acting_user)
            result_payload = self._accept_payload(family_config, acting_user, ref, response_payload)

        if not await self.notifications.complete_action(notification.id, acting_user.id, decision):
            await self.session.rollback()
            raise IllegalStateError("This notification does not require an action or was already responded to")

        outcome_reference = notification.reference
        if decision == Decision.ACCEPTED:
            if family_config.connection_type is not None:
                connection = await self.connections.get_or_create(requester.id, acting_user.id, family_config.connection_type)
                outcome_reference = ReferenceObject(
                    reference_model=ReferenceModel.USER_CONNECTION, reference=connection.id
                )
            if ref is not None:
                await self.references.for_kind(ref.kind).on_accepted(ref)

        wording = family_config.wording_for(requester.role)
        result_type, confirmation_type = family_config.types.outcome(decision)
        alt_result, alt_confirmation = wording.outcome(decision) if wording else (None, None)
        now = utcnow()
        result = self._new_notification(
            owner=requester,
            counterpart=acting_user,
            type=result_type,
            template_key=alt_result,
            family=family_config.family,
            reference=outcome_reference,
            payload_value=result_payload,
            now=now,
        )
        confirmation = self._new_notification(
            owner=acting_user,
            counterpart=requester,
            type=confirmation_type,
            template_key=alt_confirmation,
            family=family_config.family,
            reference=outcome_reference,
            payload_value=result_payload,
            now=now,
        )
        await self.notifications.add_many([result, confirmation])
        await self.session.commit()

        logger.info(
            "%s request %s %s by %s", family_config.family.value, notification.id, decision.value, acting_user.id
        )
        await self._push(requester, result, acting_user)
        await self._push(acting_user, confirmation, requester)
        return confirmation

    def _accept_payload(
        self, family_config: RequestFamilyConfig, responder: User, ref, response_payload: Optional[str]
    ) -> Optional[str]:
        """Value attached to an acceptance, enforcing the family's preconditions."""
        if family_config.accept_requires_scheduling_url:
            if not responder.scheduling_url:
                raise UnprocessableEntityError(
                    "Add a scheduling link to your profile before accepting meeting requests"
                )
            return responder.scheduling_url
        if family_config.accept_requires_payload:
            value = response_payload or (ref.attributes.get("pitch_deck_url") if ref is not None else None)
            if not value:
                raise UnprocessableEntityError("A pitch deck link is required to accept this request")
            return value
        return response_payload

    # Inbox

    def _since(self) -> datetime:
        return utcnow() - timedelta(days=self.retention_days)

    async def list_for_user(
        self, user: User, page: int = 1, page_size: Optional[int] = None
    ) -> NotificationPage:
        """Visible notifications, newest first, rendered in the user's language, plus the badge count."""
        page = max(page, 1)
        page_size = min(max(page_size or self.page_size, 1), self.max_page_size)
        since = self._since()
        items = await self.notifications.list_for_user(
            user.id, since, offset=(page - 1) * page_size, limit=page_size
        )
        for item in items:
            item.message = self._render(item, item.actor, user.language, CHANNEL_INBOX)
        total = await self.notifications.count_for_user(user.id, since)
        badge_count = await self.notifications.count_unread(user.id, since)
        return NotificationPage(
            items=items, badge_count=badge_count, total=total, page=page, page_size=page_size
        )

    async def mark_read(self, notification_id: str, user: User) -> Notification:
        """Mark the notification read, along with every older unread one of the user."""
        notification = await self.notifications.get_by_id(notification_id)
        if notification is None or notification.created_at < self._since():
            raise NotFoundError("Notification", notification_id)
        if notification.user_id != user.id:
            raise AuthorizationError("You can only mark your own notifications as read")
        updated = await self.notifications.mark_read_through(user.id, notification.created_at)
        if updated:
            logger.info("Marked %s notifications read for user %s", updated, user.id)
        notification.status = NotificationStatus.READ
        counterpart = await self.users.get_by_id(notification.actor_id) if notification.actor_id else None
        self._present(notification, user, counterpart)
        return notification

    async def mark_all_read(self, user: User) -> int:
        updated = await self.notifications.mark_all_read(user.id)
        logger.info("Marked %s notifications read for user %s", updated, user.id)
        return updated

    # Helpers

    def _new_notification(
        self,
        *,
        owner: User,
        counterpart: User,
        type: NotificationType,
        template_key: Optional[NotificationType],
        family: RequestFamily,
        reference: Optional[ReferenceObject],
        payload_value: Optional[str],
        now: datetime,
        action_required: bool = False,
    ) -> Notification:
        notification = Notification(
            id=generate_id(),
            user_id=owner.id,
            actor_id=counterpart.id,
            type=type,
            template_key=template_key,
            status=NotificationStatus.UNREAD,
            action_status=ActionStatus.REQUIRED if action_required else None,
            decision=None,
            family=family,
            reference=reference,
            payload_value=payload_value,
            created_at=now,
            updated_at=now,
        )
        return self._present(notification, owner, counterpart)

    def _present(self, notification: Notification, owner: User, counterpart: Optional[User]) -> Notification:
        """Attach the counterpart summary and the inbox message in the owner's language."""
        notification.actor = UserSummary.from_user(counterpart) if counterpart is not None else None
        notification.message = self._render(notification, counterpart, owner.language, CHANNEL_INBOX)
        return notification

    def _render(self, notification: Notification, counterpart, locale: str, channel: str) -> str:
        context = {
            "actor_name": _display_name(counterpart),
            "actor_first_name": (counterpart.name if counterpart is not None else None) or "Someone",
            "payload": notification.payload_value,
        }
        return self.templates.render(notification.display_key, locale, context, channel=channel)

    async def _push(self, owner: User, notification: Notification, counterpart: User) -> None:
        """Best-effort push after commit. Never raises."""
        try:
            badge_count = await self.notifications.count_unread(owner.id, self._since())
            body = None
            if self.templates.has_template(notification.display_key, CHANNEL_PUSH):
                body = self._render(notification, counterpart, owner.language, CHANNEL_PUSH)
            await self.dispatcher.dispatch(
                owner,
                PushPayload(title=self.push_title, body=body, data=notification_data(notification)),
                badge_count,
            )
        except Exception:
            logger.exception("Push for notification %s failed", notification.id)
