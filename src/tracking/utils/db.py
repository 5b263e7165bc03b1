"""Schema management and connection settings for SQL-backed tracking providers."""

from protean.domain import Domain
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url

from tracking.config import DEFAULTS

SQL_PROVIDERS = ("sqlite", "postgresql")


def bounded_database_uri(uri: str, timeout_seconds: int) -> str:
    """Add libpq connect and statement timeouts to a PostgreSQL URI.

    Values already present in the URI are kept. Other backends pass through.
    """
    url = make_url(uri)
    if url.get_backend_name() != "postgresql":
        return uri
    query = {
        "connect_timeout": str(timeout_seconds),
        "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
    }
    query.update(url.query)
    return url.update_query_dict(query).render_as_string(hide_password=False)


def apply_persistence_timeouts(domain: Domain) -> list[str]:
    """Bound every PostgreSQL database of ``domain``; call before ``domain.init()``."""
    timeout = (domain.config.get("custom") or {}).get(
        "PERSISTENCE_TIMEOUT_SECONDS", DEFAULTS["PERSISTENCE_TIMEOUT_SECONDS"]
    )
    handled = []
    for name, conn_info in (domain.config.get("databases") or {}).items():
        if conn_info.get("provider") != "postgresql" or not conn_info.get("database_uri"):
            continue
        conn_info["database_uri"] = bounded_database_uri(conn_info["database_uri"], timeout)
        handled.append(name)
    return handled


def _load_models(domain: Domain, provider_name: str) -> None:
    # Touching ``_dao`` registers the element's table with the provider's metadata
    registry = domain.registry
    for records in (registry.aggregates, registry.entities, registry.projections):
        for _, record in records.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> list[str]:
    """Create tables for every SQL provider; returns the provider names handled."""
    handled = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in SQL_PROVIDERS:
                continue
            _load_models(domain, provider.name)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            handled.append(name)
    return handled


def drop_db(domain: Domain) -> list[str]:
    """Drop tables for every SQL provider; returns the provider names handled."""
    handled = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in SQL_PROVIDERS:
                continue
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            handled.append(name)
    return handled
