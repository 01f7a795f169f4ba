"""Initialize the Flask app and its service wiring."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask, g
from werkzeug.middleware.proxy_fix import ProxyFix

from .constants import (
    DEFAULT_CURRENCY,
    JOIN_CODE_MAX_ATTEMPTS,
    STORE_RETRY_ATTEMPTS,
    STORE_RETRY_BASE_DELAY,
    STORE_TIMEOUT,
    TRANSACTION_MAX_ATTEMPTS,
)


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the best available credentials."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = app.config.get("FIREBASE_CREDENTIALS_JSON")
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
            project_id = app.config.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        options = {"projectId": project_id} if project_id else None
        try:
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def _store_factory(app, store=None):
    """Return a callable that yields the document store for one request."""
    if store is not None:
        return lambda: store

    backend = app.config["STORE_BACKEND"]
    if backend == "memory":
        from .store import MemoryStore

        shared = MemoryStore(max_attempts=app.config["TRANSACTION_MAX_ATTEMPTS"])
        return lambda: shared

    if backend != "firestore":
        raise ValueError(f"Unknown STORE_BACKEND: {backend}")

    from google.cloud import firestore

    from .store.firestore import FirestoreStore

    def build():
        # The async client binds to the event loop of its first call, and every
        # async view runs in its own loop, so each request gets a fresh client.
        fb_app = firebase_admin.get_app()
        client = firestore.AsyncClient(
            project=fb_app.project_id,
            credentials=fb_app.credential.get_credential(),
        )
        return FirestoreStore(
            client,
            timeout=app.config["STORE_TIMEOUT"],
            attempts=app.config["STORE_RETRY_ATTEMPTS"],
            base_delay=app.config["STORE_RETRY_BASE_DELAY"],
            max_transaction_attempts=app.config["TRANSACTION_MAX_ATTEMPTS"],
        )

    return build


def create_app(test_config=None, store=None, auth_provider=None):
    """Create and configure an instance of the Flask application.

    ``store`` and ``auth_provider`` replace the configured backends, which is
    how the tests run the app without Firebase.
    """
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        STORE_BACKEND=os.environ.get("STORE_BACKEND") or "firestore",
        FIREBASE_CREDENTIALS_JSON=os.environ.get("FIREBASE_CREDENTIALS_JSON"),
        FIREBASE_PROJECT_ID=os.environ.get("FIREBASE_PROJECT_ID"),
        STORE_TIMEOUT=float(os.environ.get("STORE_TIMEOUT") or STORE_TIMEOUT),
        STORE_RETRY_ATTEMPTS=int(
            os.environ.get("STORE_RETRY_ATTEMPTS") or STORE_RETRY_ATTEMPTS
        ),
        STORE_RETRY_BASE_DELAY=float(
            os.environ.get("STORE_RETRY_BASE_DELAY") or STORE_RETRY_BASE_DELAY
        ),
        TRANSACTION_MAX_ATTEMPTS=int(
            os.environ.get("TRANSACTION_MAX_ATTEMPTS") or TRANSACTION_MAX_ATTEMPTS
        ),
        JOIN_CODE_MAX_ATTEMPTS=int(
            os.environ.get("JOIN_CODE_MAX_ATTEMPTS") or JOIN_CODE_MAX_ATTEMPTS
        ),
        DEFAULT_CURRENCY=os.environ.get("DEFAULT_CURRENCY") or DEFAULT_CURRENCY,
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    if auth_provider is None:
        from .auth.identity import FirebaseAuthProvider

        auth_provider = FirebaseAuthProvider()

    app.extensions["bandsync"] = {
        "store_factory": _store_factory(app, store),
        "auth_provider": auth_provider,
    }

    # Register blueprints
    from .auth import routes as auth_routes

    app.register_blueprint(auth_routes.bp)

    from .group import routes as group_routes

    app.register_blueprint(group_routes.bp)

    from .permissions import routes as permission_routes

    app.register_blueprint(permission_routes.bp)

    from .core import routes as record_routes

    app.register_blueprint(record_routes.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def build_services():
        """Wire a fresh session and service set for this request into g."""
        from .context import ServiceContext

        wiring = app.extensions["bandsync"]
        g.services = ServiceContext.build(
            wiring["store_factory"](), wiring["auth_provider"], app.config
        )

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
