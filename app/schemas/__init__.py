"""
Schémas Pydantic pour la validation des données.
"""

from .common import (
    ClientModel,
    ImageIn,
    ImageRef,
    SuccessResponse,
    ErrorResponse,
    normalize_images,
    images_to_client,
)
from .user import (
    UserRegister,
    UserLogin,
    UserUpdate,
    UserOut,
    UserEnvelope,
    AuthResponse,
)
from .demande import (
    DemandeCreate,
    DemandeStatusUpdate,
    DemandeSummary,
    DemandeOut,
    DemandeEnvelope,
    DemandeList,
)
from .reponse import (
    ReponseCreate,
    ReponseOut,
    ReponseEnvelope,
    ReponseList,
)
from .message import (
    MessageCreate,
    MessageOut,
    ConversationOut,
    MessageEnvelope,
    MessageList,
    ConversationList,
    ConversationDeleted,
)
from .notification import (
    NotificationOut,
    NotificationList,
    NotificationEnvelope,
    NotificationCount,
)
from .admin import (
    BanRequest,
    AdminMessageRequest,
    AdminMessageResult,
    SweepResult,
    AdminStats,
    PublicStats,
    AdminActionOut,
    UserList,
    PostList,
    AdminActionList,
)

__all__ = [
    # Common
    "ClientModel",
    "ImageIn",
    "ImageRef",
    "SuccessResponse",
    "ErrorResponse",
    "normalize_images",
    "images_to_client",
    # User
    "UserRegister",
    "UserLogin",
    "UserUpdate",
    "UserOut",
    "UserEnvelope",
    "AuthResponse",
    # Demande
    "DemandeCreate",
    "DemandeStatusUpdate",
    "DemandeSummary",
    "DemandeOut",
    "DemandeEnvelope",
    "DemandeList",
    # Reponse
    "ReponseCreate",
    "ReponseOut",
    "ReponseEnvelope",
    "ReponseList",
    # Message
    "MessageCreate",
    "MessageOut",
    "ConversationOut",
    "MessageEnvelope",
    "MessageList",
    "ConversationList",
    "ConversationDeleted",
    # Notification
    "NotificationOut",
    "NotificationList",
    "NotificationEnvelope",
    "NotificationCount",
    # Admin
    "BanRequest",
    "AdminMessageRequest",
    "AdminMessageResult",
    "SweepResult",
    "AdminStats",
    "PublicStats",
    "AdminActionOut",
    "UserList",
    "PostList",
    "AdminActionList",
]
