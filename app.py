"""Flask web application for the Canadian university advisor."""

import logging
import random
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request

import config
from uniadvisor.services import (
    ConversationService,
    CredentialStore,
    LLMService,
    ProfileService,
    RecommendationService,
    SessionIssuer,
)
from uniadvisor.services.errors import AdvisorError
from uniadvisor.services.llm_service import Completer
from uniadvisor.services.profile_service import profile_to_api

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("uniadvisor")

WELCOME_BACK_MESSAGES = [
    "Welcome back \U0001F44B Ready to plan your future?",
    "Good to see you again! Let's continue \U0001F50D",
    "Welcome back! Your journey continues \U0001F680",
    "Back again? Let's find your best uni \U0001F393",
    "Welcome back, scholar \U0001F60E",
]


def random_welcome() -> str:
    return random.choice(WELCOME_BACK_MESSAGES)


@dataclass
class Services:
    credentials: CredentialStore
    sessions: SessionIssuer
    profiles: ProfileService
    recommendations: RecommendationService
    conversations: ConversationService


api = Blueprint("api", __name__)


def _services() -> Services:
    return current_app.extensions["uniadvisor"]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _bearer_token() -> Optional[str]:
    header = (request.headers.get("Authorization") or "").strip()
    if header[:7].lower() == "bearer ":
        return header[7:].strip()
    return header or None


def login_required(f):
    """Decorator to require a valid bearer token; sets g.username."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.username = _services().sessions.verify(_bearer_token())
        return f(*args, **kwargs)
    return decorated_function


@api.errorhandler(AdvisorError)
def handle_advisor_error(e: AdvisorError):
    if e.status_code >= 500:
        logger.error("%s on %s %s: %s", e.__class__.__name__, request.method, request.path, e)
    return jsonify({"error": e.public_message or str(e), "code": e.code}), e.status_code


@api.route("/health")
def health():
    return jsonify({"status": "ok"})


@api.route("/signup", methods=["POST"])
def signup():
    """Create a username/password account."""
    data = _json_body()
    _services().credentials.create(data.get("username"), data.get("password"))
    return jsonify({"message": "Account created successfully"})


@api.route("/login", methods=["POST"])
def login():
    """Check credentials and hand out a bearer token plus the stored profile."""
    data = _json_body()
    services = _services()
    user = services.credentials.verify(data.get("username"), data.get("password"))
    token = services.sessions.issue(user.username)
    logger.info("Login for %s", user.username)
    return jsonify({
        "token": token,
        "username": user.username,
        **profile_to_api(user.profile),
        "welcome": random_welcome(),
    })


@api.route("/logout", methods=["POST"])
@login_required
def logout():
    # Tokens are stateless; nothing to destroy server-side.
    return jsonify({"message": "Logged out successfully"})


@api.route("/user-data", methods=["GET", "POST"])
@login_required
def user_data():
    """Get or partially update the current user's profile."""
    profiles = _services().profiles
    if request.method == "GET":
        return jsonify(profile_to_api(profiles.read(g.username)))

    profile = profiles.update(g.username, _json_body())
    return jsonify({"message": "User data updated", "profile": profile_to_api(profile)})


@api.route("/ai", methods=["POST"])
@login_required
def recommend():
    """Recommend universities from the request body merged over the stored profile."""
    recommendations = _services().recommendations
    query = recommendations.build_query(g.username, _json_body())
    return jsonify(recommendations.recommend(query))


@api.route("/cat-ai", methods=["POST"])
@login_required
def cat_ai():
    """One advisor cat chat turn."""
    answer = _services().conversations.ask(g.username, _json_body().get("question"))
    return jsonify({"answer": answer})


def create_app(
    *,
    credentials: Optional[CredentialStore] = None,
    sessions: Optional[SessionIssuer] = None,
    llm: Optional[Completer] = None,
    recommendation_mode: Optional[str] = None,
    chat_max_messages: Optional[int] = None,
) -> Flask:
    """Build the Flask app; every collaborator can be injected for tests."""
    app = Flask(__name__)

    if sessions is None and config.SESSION_SECRET_IS_DEFAULT:
        logger.warning("SESSION_SECRET not set; using the insecure default. Set it in production.")

    credentials = credentials if credentials is not None else CredentialStore()
    llm = llm if llm is not None else LLMService()
    profiles = ProfileService(credentials)
    app.extensions["uniadvisor"] = Services(
        credentials=credentials,
        sessions=sessions if sessions is not None else SessionIssuer(),
        profiles=profiles,
        recommendations=RecommendationService(llm, profiles, mode=recommendation_mode),
        conversations=ConversationService(llm, max_messages=chat_max_messages),
    )
    app.register_blueprint(api)
    return app


if __name__ == '__main__':
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY environment variable not set")

    create_app().run(debug=False, host='0.0.0.0', port=config.PORT, threaded=True)
