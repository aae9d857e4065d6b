"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from social_api.domain.errors import (
    AuthNotConfiguredError,
    ConflictError,
    DatabaseNotConfiguredError,
    InvalidTransitionError,
    NotFoundError,
    RepositoryError,
    SocialApiError,
    ValidationError,
)
from social_api.domain.models import (
    Comment,
    Discoverability,
    Entity,
    Event,
    Friendship,
    FriendshipStatus,
    Group,
    MembershipAction,
    Post,
    PrivacySettings,
    Role,
    Rsvp,
    RsvpStatus,
    User,
    Visibility,
)
from social_api.domain.ports import (
    AllOf,
    AnyOf,
    BatchLoad,
    CommentRepository,
    EntityRepository,
    ErrorKind,
    EventRepository,
    FriendshipRepository,
    GroupRepository,
    PostRepository,
    RepositoryResult,
    UserRepository,
    Where,
)

__all__ = [
    # Models
    "Entity",
    "User",
    "PrivacySettings",
    "Friendship",
    "Group",
    "Post",
    "Comment",
    "Event",
    "Rsvp",
    "Role",
    "Visibility",
    "Discoverability",
    "FriendshipStatus",
    "RsvpStatus",
    "MembershipAction",
    # Errors
    "SocialApiError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "DatabaseNotConfiguredError",
    "AuthNotConfiguredError",
    "RepositoryError",
    # Ports
    "RepositoryResult",
    "ErrorKind",
    "BatchLoad",
    "Where",
    "AnyOf",
    "AllOf",
    "EntityRepository",
    "UserRepository",
    "FriendshipRepository",
    "GroupRepository",
    "PostRepository",
    "CommentRepository",
    "EventRepository",
]
