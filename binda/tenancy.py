"""
Tenant context and host/slug resolution helpers.

A ``TenantContext`` is built once per request (from the authenticated user's profile, or
from the public tenant a booking flow resolved) and passed explicitly to every repository
call. Nothing tenant-scoped is read from ambient state.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

SLUG_PATTERN = re.compile(r"^[a-z0-9-]{3,50}$")

# First path segments that are routes, never tenant slugs
RESERVED_PATH_SEGMENTS = {"auth", "api", "app", "dashboard", "book", "admin", "health", "docs"}

# Host labels that never name a tenant
RESERVED_SUBDOMAINS = {"www", "app", "api"}


@dataclass(frozen=True)
class TenantContext:
    """Tenant scope for one request, plus the acting user when authenticated"""

    tenant_id: str
    timezone: str = "UTC"
    currency: str = "NGN"
    user_id: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_public(self) -> bool:
        return self.user_id is None


def is_valid_tenant_slug(slug: str) -> bool:
    """Slug is lowercase alphanumeric with hyphens, 3-50 characters, no edge hyphens"""
    return bool(slug) and bool(SLUG_PATTERN.match(slug)) and not slug.startswith("-") and not slug.endswith("-")


def normalize_tenant_slug(value: str) -> str:
    """Turn a business name into a slug candidate ("Acme Hair & Co" -> "acme-hair-co")"""
    slug = value.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def tenant_slug_from_url(url: str) -> Optional[str]:
    """
    Extract a tenant slug from a URL.

    Supports ``<slug>.example.com`` (subdomain) and ``example.com/<slug>/...`` (path).
    Reserved subdomains and route prefixes are never returned.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None

    hostname = parts.hostname or ""
    labels = hostname.split(".")
    if len(labels) > 1 and labels[0] and labels[0] not in RESERVED_SUBDOMAINS:
        # Bare "localhost:3000" or "example.com" have no tenant label
        if hostname.endswith("localhost") or len(labels) > 2:
            return labels[0]

    segments = [s for s in parts.path.split("/") if s]
    if segments and segments[0] not in RESERVED_PATH_SEGMENTS and "." not in segments[0]:
        return segments[0]

    return None


def is_app_host(host: str, app_domain: str) -> bool:
    """True for the dashboard host ``app.<app_domain>`` (port ignored)"""
    hostname = host.split(":")[0].lower()
    return hostname == f"app.{app_domain}" or hostname.startswith("app.localhost")


def rewrite_app_path(path: str) -> Optional[str]:
    """
    Map a path on the app subdomain onto the internal /app tree.

    Returns None for the root path, which redirects to the dashboard instead. API
    calls made from the dashboard keep their path.
    """
    if path in ("", "/"):
        return None
    if path == "/app" or path.startswith(("/app/", "/api/")) or path == "/health":
        return path
    return f"/app{path}"
