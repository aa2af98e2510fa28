"""Portal-side REST helpers: identity token bootstrap and catalog lookups."""

from portal_e2e.portal.auth import PortalAuthError, TokenNotFoundError, get_token, wait_for_token
from portal_e2e.portal.catalog import CatalogApiError, CatalogClient

__all__ = [
    "CatalogApiError",
    "CatalogClient",
    "PortalAuthError",
    "TokenNotFoundError",
    "get_token",
    "wait_for_token",
]
