# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the Broadcaster, which stores and publishes verified reference values."""

import logging

from rvps.broadcaster.publisher import Publisher, RedisPublisher
from rvps.cache import Cache, SimpleCache
from rvps.cache.database_cache import get_database_cache
from rvps.config.defaults import defaults
from rvps.errors import ConfigurationError, SerializationFailedError
from rvps.reference_value import ReferenceValue, serialize

logger: logging.Logger = logging.getLogger(__name__)


class Broadcaster:
    """Store reference values in a cache and publish them to the subscribers.

    Storing comes first. If publishing fails afterwards, the cache already holds the new
    reference value while no subscriber was notified. Nothing is rolled back: storing the
    same reference value again overwrites the entry and publishes it again.

    The Broadcaster does not synchronize its methods. Callers sharing one instance across
    threads serialize their calls.
    """

    def __init__(self, cache: Cache, publisher: Publisher) -> None:
        """Initialize instance.

        Parameters
        ----------
        cache : Cache
            The cache storing the reference values.
        publisher : Publisher
            The channel used to notify the subscribers.
        """
        self.cache = cache
        self.publisher = publisher

    def store_and_publish(self, reference_value: ReferenceValue) -> None:
        """Store the reference value under its name, then publish its JSON form.

        Parameters
        ----------
        reference_value : ReferenceValue
            The verified reference value.

        Raises
        ------
        SerializationFailedError
            If the reference value cannot be serialized. Nothing is stored or published.
        CacheBackendError
            If the cache cannot store the reference value. Nothing is published.
        ChannelUnavailableError
            If the message cannot be published. The reference value stays in the cache.
        """
        if not reference_value.name:
            raise SerializationFailedError("A reference value without an artifact name cannot be stored.")
        message = serialize(reference_value)

        self.cache.put(reference_value.name, reference_value)
        logger.debug("Stored the reference value of %s.", reference_value.name)

        self.publisher.publish(message)
        logger.info("Published the reference value of %s.", reference_value.name)

    def get(self, name: str) -> ReferenceValue | None:
        """Return the stored reference value of an artifact, or None if there is none."""
        return self.cache.get(name)

    def get_all(self) -> list[ReferenceValue]:
        """Return all the stored reference values."""
        return self.cache.get_all()

    def close(self) -> None:
        """Close the publisher and the cache."""
        try:
            self.publisher.close()
        finally:
            self.cache.close()


def build_default_broadcaster() -> Broadcaster:
    """Build a Broadcaster from the ``[cache]`` and ``[broadcaster]`` sections of ``defaults.ini``.

    Returns
    -------
    Broadcaster
        The Broadcaster.

    Raises
    ------
    ConfigurationError
        If the cache backend is unknown.
    CacheBackendError
        If the database cache cannot be initialized.
    """
    backend = defaults.get("cache", "backend", fallback="simple")
    cache: Cache
    if backend == "simple":
        cache = SimpleCache()
    elif backend == "database":
        cache = get_database_cache()
    else:
        raise ConfigurationError(f"Unknown cache backend {backend} in defaults.ini.")

    publisher = RedisPublisher(
        channel=defaults.get("broadcaster", "channel", fallback="rvps.reference_values"),
        url=defaults.get("broadcaster", "redis_url", fallback="redis://127.0.0.1:6379/0"),
    )
    return Broadcaster(cache, publisher)
