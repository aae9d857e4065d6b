"""Client layer - バックエンド API クライアントとモックフォールバック"""

from social_api.client.base import (
    BackendClient,
    BackendError,
    BackendUnavailableError,
)
from social_api.client.http_client import HttpBackendClient
from social_api.client.mock_backend import MOCK_USER_ID, InMemoryBackend
from social_api.client.services import SocialClient

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendUnavailableError",
    "HttpBackendClient",
    "InMemoryBackend",
    "MOCK_USER_ID",
    "SocialClient",
]
