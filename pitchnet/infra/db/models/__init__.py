"""Database models."""
from pitchnet.infra.db.models.user import UserModel
from pitchnet.infra.db.models.device import DeviceModel
from pitchnet.infra.db.models.pitch import PitchModel, PitchReviewModel
from pitchnet.infra.db.models.notification import NotificationModel
from pitchnet.infra.db.models.connection import UserConnectionModel

__all__ = [
    "UserModel",
    "DeviceModel",
    "PitchModel",
    "PitchReviewModel",
    "NotificationModel",
    "UserConnectionModel",
]
