"""Schema management for domains backed by a SQL provider.

The in-memory provider needs no schema, so only ``sqlite`` and ``postgresql``
providers are touched.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for name, provider in domain.providers.items():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield name, provider


def _register_tables(domain: Domain, provider_name: str) -> int:
    """Build the DAO of every aggregate and entity so their tables join the metadata."""
    registered = 0
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018
            registered += 1
    return registered


def setup_db(domain: Domain) -> list[str]:
    """Create tables for every SQL provider of ``domain``. Returns the providers touched."""
    touched = []
    with domain.domain_context():
        for name, provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            _register_tables(domain, name)
            provider._metadata.create_all(engine)
            touched.append(name)
    return touched


def drop_db(domain: Domain) -> list[str]:
    """Drop tables for every SQL provider of ``domain``. Returns the providers touched."""
    touched = []
    with domain.domain_context():
        for name, provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            _register_tables(domain, name)
            provider._metadata.drop_all(engine)
            touched.append(name)
    return touched
