"""Centralized configuration for the storefront web app."""

import os

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Write structured catalog events to logs/*.jsonl
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "True").lower() == "true"

# Products endpoint
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# Lets a fronting CDN hold listings briefly and revalidate in the background
CACHE_CONTROL_PRODUCTS = os.getenv(
    "CACHE_CONTROL_PRODUCTS", "public, s-maxage=60, stale-while-revalidate=300"
)

# Image proxy
IMAGE_CACHE_TTL = int(os.getenv("IMAGE_CACHE_TTL", str(24 * 60 * 60)))
IMAGE_CACHE_MAX_ENTRIES = int(os.getenv("IMAGE_CACHE_MAX_ENTRIES", "1000"))
IMAGE_FETCH_TIMEOUT = float(os.getenv("IMAGE_FETCH_TIMEOUT", "8"))
IMAGE_CACHE_CONTROL = "public, max-age=86400"
PLACEHOLDER_CACHE_CONTROL = "public, max-age=300"
