# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the interface of the caches storing verified reference values."""

import abc

from rvps.reference_value import ReferenceValue


class Cache(abc.ABC):
    """Store the latest reference value of each artifact.

    A cache keeps one reference value per artifact name: storing a reference value
    replaces the previous one with the same name. Mutating methods are not synchronized;
    callers sharing a cache across threads serialize their access.
    """

    @abc.abstractmethod
    def put(self, name: str, reference_value: ReferenceValue) -> None:
        """Store a reference value under the artifact name, replacing any previous one.

        Raises
        ------
        CacheBackendError
            If the storage backend fails.
        """

    @abc.abstractmethod
    def get(self, name: str) -> ReferenceValue | None:
        """Return the reference value stored under the artifact name, or None if there is none.

        Raises
        ------
        CacheBackendError
            If the storage backend fails.
        """

    @abc.abstractmethod
    def get_all(self) -> list[ReferenceValue]:
        """Return a snapshot of all the stored reference values, in no particular order.

        Raises
        ------
        CacheBackendError
            If the storage backend fails.
        """

    def close(self) -> None:
        """Release the resources of the storage backend."""
