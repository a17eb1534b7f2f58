# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the cache storing reference values in a sqlite database."""

import datetime
import logging
import os

import sqlalchemy.exc
from sqlalchemy import JSON, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from rvps.cache.base_cache import Cache
from rvps.cache.db_custom_types import RFC3339DateTime
from rvps.config.defaults import defaults
from rvps.config.global_config import global_config
from rvps.errors import CacheBackendError
from rvps.reference_value import HashValuePair, ReferenceValue

logger: logging.Logger = logging.getLogger(__name__)


class ORMBase(DeclarativeBase):
    """ORM base class."""


class ReferenceValueRecord(ORMBase):
    """The latest reference value of an artifact."""

    __tablename__ = "reference_value"

    #: The artifact name.
    name: Mapped[str] = mapped_column(String, primary_key=True)

    #: The version of the reference value format.
    version: Mapped[str] = mapped_column(String, nullable=False)

    #: The expiration time.
    expired: Mapped[datetime.datetime] = mapped_column(RFC3339DateTime, nullable=False)

    #: The list of ``{"alg": ..., "value": ...}`` objects, in insertion order.
    hash_value: Mapped[list] = mapped_column(JSON, nullable=False)

    @classmethod
    def from_reference_value(cls, name: str, reference_value: ReferenceValue) -> "ReferenceValueRecord":
        """Create the row storing a reference value under an artifact name."""
        return cls(
            name=name,
            version=reference_value.version,
            expired=reference_value.expiration,
            hash_value=[{"alg": pair.alg, "value": pair.value} for pair in reference_value.hash_values],
        )

    def to_reference_value(self) -> ReferenceValue:
        """Return the reference value stored in this row."""
        return ReferenceValue(
            version=self.version,
            name=self.name,
            expiration=self.expired,
            hash_values=tuple(HashValuePair(pair["alg"], pair["value"]) for pair in self.hash_value),
        )


class DatabaseCache(Cache):
    """Persist the reference values in a sqlite database so they survive restarts."""

    def __init__(self, db_path: str) -> None:
        """Initialize instance.

        Parameters
        ----------
        db_path : str
            The path to the target database. It is created if it does not exist.

        Raises
        ------
        CacheBackendError
            If the database cannot be initialized.
        """
        self.db_name = db_path
        self.engine = create_engine(f"sqlite+pysqlite:///{db_path}", echo=False)
        try:
            ORMBase.metadata.create_all(self.engine, checkfirst=True)
        except sqlalchemy.exc.SQLAlchemyError as error:
            raise CacheBackendError(f"Database error on create tables: {error}") from error

    def put(self, name: str, reference_value: ReferenceValue) -> None:
        try:
            with Session(self.engine) as session, session.begin():
                session.merge(ReferenceValueRecord.from_reference_value(name, reference_value))
        except sqlalchemy.exc.SQLAlchemyError as error:
            raise CacheBackendError(f"Cannot store the reference value of {name}: {error}") from error

    def get(self, name: str) -> ReferenceValue | None:
        try:
            with Session(self.engine) as session:
                record = session.get(ReferenceValueRecord, name)
                return record.to_reference_value() if record else None
        except sqlalchemy.exc.SQLAlchemyError as error:
            raise CacheBackendError(f"Cannot load the reference value of {name}: {error}") from error

    def get_all(self) -> list[ReferenceValue]:
        try:
            with Session(self.engine) as session:
                return [record.to_reference_value() for record in session.scalars(select(ReferenceValueRecord))]
        except sqlalchemy.exc.SQLAlchemyError as error:
            raise CacheBackendError(f"Cannot load the reference values: {error}") from error

    def close(self) -> None:
        """Dispose the connection pool of the database engine."""
        self.engine.dispose()


def get_database_cache() -> DatabaseCache:
    """Create the database cache in the output directory, named by ``[cache] db_name``.

    Returns
    -------
    DatabaseCache
        The database cache.
    """
    db_path = os.path.join(global_config.output_path, defaults.get("cache", "db_name", fallback="rvps.db"))
    logger.debug("Storing the reference values in %s.", db_path)
    return DatabaseCache(db_path)
