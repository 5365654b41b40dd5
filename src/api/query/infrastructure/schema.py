"""Schema descriptor for the instance read tables.

The projection side owns and fills these tables; this module only describes
them so statements can reference fully qualified columns. A descriptor is
built once from configuration and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    MetaData,
    SmallInteger,
    String,
    Table,
    Text,
)
from sqlalchemy.sql.expression import Join


class InstanceColumn(StrEnum):
    """Logical columns of the instance read table."""

    ID = "id"
    NAME = "name"
    CREATION_DATE = "creation_date"
    CHANGE_DATE = "change_date"
    SEQUENCE = "sequence"
    GLOBAL_ORG_ID = "global_org_id"
    PROJECT_ID = "iam_project_id"
    CONSOLE_ID = "console_client_id"
    CONSOLE_APP_ID = "console_app_id"
    SETUP_STARTED = "setup_started"
    SETUP_DONE = "setup_done"
    DEFAULT_LANGUAGE = "default_language"


class InstanceDomainColumn(StrEnum):
    """Logical columns of the domain binding table."""

    INSTANCE_ID = "instance_id"
    DOMAIN = "domain"


ColumnRef = InstanceColumn | InstanceDomainColumn

# Column order shared by every instance statement and the row scanner.
INSTANCE_PROJECTION: tuple[InstanceColumn, ...] = (
    InstanceColumn.ID,
    InstanceColumn.CREATION_DATE,
    InstanceColumn.CHANGE_DATE,
    InstanceColumn.SEQUENCE,
    InstanceColumn.GLOBAL_ORG_ID,
    InstanceColumn.PROJECT_ID,
    InstanceColumn.CONSOLE_ID,
    InstanceColumn.CONSOLE_APP_ID,
    InstanceColumn.SETUP_STARTED,
    InstanceColumn.SETUP_DONE,
    InstanceColumn.DEFAULT_LANGUAGE,
)


@dataclass(frozen=True)
class InstanceSchema:
    """Tables backing instance lookups.

    Attributes:
        instances: The instance read table.
        domains: The domain binding table joined for host lookups.
    """

    instances: Table
    domains: Table

    def column(self, ref: ColumnRef) -> Column:
        """Return the table-qualified column for a logical column."""
        if isinstance(ref, InstanceDomainColumn):
            return self.domains.c[ref.value]
        return self.instances.c[ref.value]

    @property
    def projection(self) -> tuple[Column, ...]:
        """Selected instance columns in scanner order."""
        return tuple(self.column(ref) for ref in INSTANCE_PROJECTION)

    def domain_join(self) -> Join:
        """LEFT JOIN of instances against their domain bindings."""
        return self.instances.outerjoin(
            self.domains,
            self.column(InstanceDomainColumn.INSTANCE_ID)
            == self.column(InstanceColumn.ID),
        )


def build_instance_schema(
    schema_name: str | None = "projections",
    instance_table: str = "instances",
    domain_table: str = "instance_domains",
) -> InstanceSchema:
    """Describe the instance read tables.

    Args:
        schema_name: Database schema holding the tables, or None for the
            connection's search path.
        instance_table: Name of the instance read table.
        domain_table: Name of the domain binding table.

    Returns:
        A descriptor bound to its own MetaData.
    """
    metadata = MetaData(schema=schema_name)

    instances = Table(
        instance_table,
        metadata,
        Column(InstanceColumn.ID.value, String, primary_key=True),
        Column(InstanceColumn.NAME.value, Text),
        Column(InstanceColumn.CREATION_DATE.value, DateTime(timezone=True)),
        Column(InstanceColumn.CHANGE_DATE.value, DateTime(timezone=True)),
        Column(InstanceColumn.SEQUENCE.value, BigInteger),
        Column(InstanceColumn.GLOBAL_ORG_ID.value, String),
        Column(InstanceColumn.PROJECT_ID.value, String),
        Column(InstanceColumn.CONSOLE_ID.value, String),
        Column(InstanceColumn.CONSOLE_APP_ID.value, String),
        Column(InstanceColumn.SETUP_STARTED.value, SmallInteger),
        Column(InstanceColumn.SETUP_DONE.value, SmallInteger),
        Column(InstanceColumn.DEFAULT_LANGUAGE.value, String),
    )

    domains = Table(
        domain_table,
        metadata,
        Column(InstanceDomainColumn.INSTANCE_ID.value, String),
        Column(InstanceDomainColumn.DOMAIN.value, String),
    )

    return InstanceSchema(instances=instances, domains=domains)
