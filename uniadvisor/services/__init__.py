"""Service layer - Business logic modules.

Each service module has a clear interface and can be developed/tested independently.
"""

from .auth_service import CredentialStore
from .conversation_service import ConversationService
from .llm_service import LLMService
from .profile_service import ProfileService
from .recommendation_service import RecommendationService
from .session_service import SessionClaims, SessionIssuer
from .user_store import JsonUserStore

__all__ = [
    "CredentialStore",
    "ConversationService",
    "JsonUserStore",
    "LLMService",
    "ProfileService",
    "RecommendationService",
    "SessionClaims",
    "SessionIssuer",
]
