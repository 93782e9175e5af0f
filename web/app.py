"""Flask web app for the provider-filtered storefront.

Serves the products API backed by the in-process catalog cache, plus the
same-origin image proxy.
"""

import atexit
import base64
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request

# Load environment variables from .env before any config module is read
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from catalog.logging_config import setup_logging  # noqa: E402
from catalog.service import CatalogService  # noqa: E402

from .api import api  # noqa: E402
from .config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, LOG_TO_FILE  # noqa: E402
from .image_proxy import ImageCache  # noqa: E402

__all__ = ["create_app", "app"]


# ---------- BASIC AUTH ----------


def _basic_auth_creds() -> tuple[Optional[str], Optional[str]]:
    """Get demo credentials from environment."""
    return os.getenv("DEMO_USER"), os.getenv("DEMO_PASS")


def _unauthorized() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="Login Required"'},
    )


def require_basic_auth() -> Optional[Response]:
    """
    Enforce HTTP Basic Auth for all routes except /health.
    Skips enforcement if credentials are not configured (DEMO_USER/DEMO_PASS unset).
    """
    user, password = _basic_auth_creds()
    if not user or not password or request.path == "/health":
        return None  # auth disabled

    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return _unauthorized()

    try:
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
        username, passwd = decoded.split(":", 1)
    except (ValueError, UnicodeDecodeError):
        return _unauthorized()

    if username == user and passwd == password:
        return None
    return _unauthorized()


# ---------- APP FACTORY ----------


def create_app(
    service: Optional[CatalogService] = None,
    image_cache: Optional[ImageCache] = None,
) -> Flask:
    """Build the Flask app around a catalog service.

    Args:
        service: Catalog service to serve from; a default one is built from
            environment configuration when omitted.
        image_cache: Image proxy cache; a default one is built when omitted.
    """
    flask_app = Flask(__name__)

    if service is None:
        service = CatalogService()
        atexit.register(service.close)

    flask_app.extensions["catalog_service"] = service
    flask_app.extensions["image_cache"] = image_cache if image_cache is not None else ImageCache()

    flask_app.before_request(require_basic_auth)
    flask_app.register_blueprint(api)

    @flask_app.route("/health", methods=["GET"])
    def health() -> Response:
        return jsonify({"status": "ok"})

    return flask_app


setup_logging(level=logging.DEBUG if FLASK_DEBUG else logging.INFO, log_to_file=LOG_TO_FILE)
app = create_app()


if __name__ == "__main__":
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG, threaded=True)
