"""API endpoints for the storefront.

- /api/products: provider-filtered listing served from the catalog cache
- /api/products/<id>: full product record, straight from the catalog API
- /api/shops, /api/categories: small lookups for the front end
- /api/image-proxy: same-origin image proxy with its own byte cache
"""

import logging
from typing import Optional, Tuple

import requests  # type: ignore[import-untyped]
from flask import Blueprint, Response, current_app, jsonify, request

from catalog.config import DEFAULT_SHOP_ID
from catalog.errors import ConfigurationMissing, FetchFailed, RefreshPassFailed, UnknownCategory
from catalog.service import CatalogService
from catalog.url_validation import URLValidationError, validate_image_url

from .config import (
    CACHE_CONTROL_PRODUCTS,
    DEFAULT_PAGE_SIZE,
    IMAGE_CACHE_CONTROL,
    MAX_PAGE_SIZE,
    PLACEHOLDER_CACHE_CONTROL,
)
from .image_proxy import PLACEHOLDER_SVG, ImageCache, fetch_image

__all__ = ["api"]

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")


def _get_service() -> CatalogService:
    return current_app.extensions["catalog_service"]


def _get_image_cache() -> ImageCache:
    return current_app.extensions["image_cache"]


def _parse_positive_int(name: str, default: int, maximum: Optional[int] = None) -> Tuple[Optional[int], Optional[str]]:
    """Read a positive integer query parameter.

    Returns (value, error_message).
    """
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return default, None
    try:
        value = int(raw)
    except ValueError:
        return None, f"{name} must be an integer"
    if value < 1:
        return None, f"{name} must be at least 1"
    if maximum is not None and value > maximum:
        return None, f"{name} must be at most {maximum}"
    return value, None


def _shop_id() -> Optional[str]:
    return request.args.get("shopId") or DEFAULT_SHOP_ID


@api.route("/products", methods=["GET"])
def list_products() -> Tuple[Response, int]:
    """Paginated, searchable listing of the target provider's products."""
    service = _get_service()
    try:
        service.check_configured()
    except ConfigurationMissing as e:
        logger.error(str(e))
        return jsonify({"error": str(e)}), 500

    shop_id = _shop_id()
    if not shop_id:
        return jsonify({"error": "Shop ID is required"}), 400

    page, error = _parse_positive_int("page", 1)
    if error:
        return jsonify({"error": error}), 400
    limit, error = _parse_positive_int("limit", DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    if error:
        return jsonify({"error": error}), 400

    search = request.args.get("search", "")
    category = request.args.get("category", "all") or "all"
    force_refresh = request.args.get("refresh", "").lower() == "true"

    try:
        envelope = service.list_products(
            shop_id,
            page=page,
            limit=limit,
            search=search,
            category=category,
            force_refresh=force_refresh,
        )
    except UnknownCategory as e:
        return jsonify({"error": str(e)}), 400
    except RefreshPassFailed:
        logger.exception(f"Could not fill product cache for shop {shop_id}")
        return jsonify({"error": "Failed to fetch products"}), 500

    response = jsonify(envelope)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRODUCTS
    return response, 200


@api.route("/products/<product_id>", methods=["GET"])
def get_product(product_id: str) -> Tuple[Response, int]:
    """Full product record, including every image and variant."""
    service = _get_service()
    shop_id = _shop_id()
    if not shop_id:
        return jsonify({"error": "Shop ID is required"}), 400

    try:
        product = service.get_product(shop_id, product_id)
    except ConfigurationMissing as e:
        logger.error(str(e))
        return jsonify({"error": str(e)}), 500
    except FetchFailed as e:
        if e.status_code == 404:
            return jsonify({"error": "Product not found"}), 404
        logger.error(f"Failed to fetch product {product_id}: {e}")
        return jsonify({"error": "Failed to fetch product"}), 500

    return jsonify(product), 200


@api.route("/shops", methods=["GET"])
def list_shops() -> Tuple[Response, int]:
    service = _get_service()
    try:
        shops = service.list_shops()
    except ConfigurationMissing as e:
        logger.error(str(e))
        return jsonify({"error": str(e)}), 500
    except FetchFailed as e:
        logger.error(f"Failed to fetch shops: {e}")
        return jsonify({"error": "Failed to fetch shops"}), 500
    return jsonify(shops), 200


@api.route("/categories", methods=["GET"])
def list_categories() -> Response:
    return jsonify({"categories": _get_service().list_categories()})


@api.route("/image-proxy", methods=["GET"])
def image_proxy():
    """Serve a catalog image from our own origin.

    Upstream failures return a placeholder SVG with a short max-age.
    """
    url = request.args.get("url")
    if not url:
        return jsonify({"error": "URL parameter is required"}), 400

    try:
        url = validate_image_url(url)
    except URLValidationError as e:
        logger.warning(f"Rejected image proxy URL: {e}")
        return jsonify({"error": "Only catalog images are allowed"}), 403

    cache = _get_image_cache()
    cached = cache.get(url)
    if cached is not None:
        return Response(
            cached.data,
            status=200,
            content_type=cached.content_type,
            headers={"Cache-Control": IMAGE_CACHE_CONTROL, "X-Cache": "HIT"},
        )

    try:
        image = fetch_image(url)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Error proxying image {url}: {e}")
        return Response(
            PLACEHOLDER_SVG,
            status=200,
            content_type="image/svg+xml",
            headers={"Cache-Control": PLACEHOLDER_CACHE_CONTROL},
        )

    cache.put(url, image.data, image.content_type)
    return Response(
        image.data,
        status=200,
        content_type=image.content_type,
        headers={
            "Cache-Control": IMAGE_CACHE_CONTROL,
            "X-Cache": "MISS",
            "Content-Length": str(len(image.data)),
        },
    )
