"""Tracking settings read from the ``[custom]`` section of ``domain.toml``."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "STANDARD_DELIVERY_DAYS": 4,
    "URGENT_DELIVERY_DAYS": 2,
    "PERSISTENCE_TIMEOUT_SECONDS": 5,
    "SEARCH_PAGE_SIZE": 10,
    "MAX_PAGE_SIZE": 50,
}


def setting(name: str):
    """Return a tracking setting for the active domain, falling back to DEFAULTS."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, DEFAULTS[name])
