"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    DEFAULT_CASE_SIZE,
    DEFAULT_MAX_ACTIVE_PRODUCTS,
    SESSION_IS_ADMIN,
    SESSION_USER_ID,
    USERS_COLLECTION,
)
from .extensions import csrf


def _env_flag(name, default):
    """Read a boolean flag from the environment."""
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the first credentials found."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        options = {"projectId": project_id} if project_id else None
        try:
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # Already initialized by another app instance in this process.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        DEFAULT_MAX_ACTIVE_PRODUCTS=int(
            os.environ.get("DEFAULT_MAX_ACTIVE_PRODUCTS")
            or DEFAULT_MAX_ACTIVE_PRODUCTS
        ),
        PIECE_ORDERING_AUTO_ENABLE=_env_flag("PIECE_ORDERING_AUTO_ENABLE", "true"),
        DEFAULT_CASE_SIZE=int(os.environ.get("DEFAULT_CASE_SIZE") or DEFAULT_CASE_SIZE),
    )

    if test_config:
        app.config.update(test_config)

    # Firebase is only initialized outside of tests
    if not app.config.get("TESTING"):
        _init_firebase(app)

    csrf.init_app(app)

    # Register blueprints
    from . import group as group_bp

    app.register_blueprint(group_bp.bp)

    from . import marketplace as marketplace_bp

    app.register_blueprint(marketplace_bp.bp)

    from . import orders as orders_bp

    app.register_blueprint(orders_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore and store it in g."""
        user_id = session.get(SESSION_USER_ID)
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
            if user_doc.exists:
                g.user = user_doc.to_dict()
                g.user["uid"] = user_id
                g.user["isSiteAdmin"] = bool(session.get(SESSION_IS_ADMIN))
            else:
                # User ID in session but no user in DB. Clear the session.
                session.clear()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
