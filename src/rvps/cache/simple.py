# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the in-memory cache of reference values."""

from rvps.cache.base_cache import Cache
from rvps.reference_value import ReferenceValue


class SimpleCache(Cache):
    """Keep the reference values in a dictionary for the lifetime of the process.

    There is no eviction: deployments that need durability use ``DatabaseCache``.
    """

    def __init__(self) -> None:
        self._inner: dict[str, ReferenceValue] = {}

    def put(self, name: str, reference_value: ReferenceValue) -> None:
        self._inner[name] = reference_value

    def get(self, name: str) -> ReferenceValue | None:
        return self._inner.get(name)

    def get_all(self) -> list[ReferenceValue]:
        return list(self._inner.values())
