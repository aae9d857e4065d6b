"""Services layer - ビジネスロジック"""

from social_api.services.relationships import RelationshipService

__all__ = [
    "RelationshipService",
]
