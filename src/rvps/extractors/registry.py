# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the registry of the provenance extractors."""

import logging
import threading
from collections.abc import Callable

from rvps.config.defaults import defaults
from rvps.errors import DuplicateError, UnsupportedProvenanceTypeError
from rvps.extractors.base_extractor import BaseExtractor
from rvps.extractors.in_toto import IN_TOTO_TYPE, InTotoExtractor

logger: logging.Logger = logging.getLogger(__name__)

ExtractorFactory = Callable[[], BaseExtractor]

#: The extractors shipped with RVPS. Add a new provenance format here.
EXTRACTOR_FACTORIES: dict[str, ExtractorFactory] = {
    IN_TOTO_TYPE: InTotoExtractor,
}


class ExtractorRegistry:
    """Map a provenance type to the factory of its extractor.

    An extractor is created the first time its provenance type is requested and the
    same instance serves every later request.
    """

    def __init__(self) -> None:
        """Initiate the ExtractorRegistry instance."""
        self._factories: dict[str, ExtractorFactory] = {}
        self._instances: dict[str, BaseExtractor] = {}
        self._lock = threading.Lock()

    def register_factory(self, type_name: str, factory: ExtractorFactory) -> None:
        """Register the factory of the extractor for a provenance type.

        Parameters
        ----------
        type_name : str
            The provenance type, e.g. ``in-toto``.
        factory : ExtractorFactory
            A callable without arguments returning the extractor.

        Raises
        ------
        DuplicateError
            If an extractor for ``type_name`` has already been created.
        """
        with self._lock:
            if type_name in self._instances:
                raise DuplicateError(f"The extractor for {type_name} is already in use and cannot be replaced.")
            if type_name in self._factories:
                logger.debug("Replacing the extractor factory for %s.", type_name)
            self._factories[type_name] = factory

    def get_factory(self, type_name: str) -> ExtractorFactory:
        """Return the factory registered for a provenance type.

        Raises
        ------
        UnsupportedProvenanceTypeError
            If no factory is registered for ``type_name``.
        """
        try:
            return self._factories[type_name]
        except KeyError as error:
            raise UnsupportedProvenanceTypeError(type_name) from error

    def get_or_create_instance(self, type_name: str) -> BaseExtractor:
        """Return the extractor for a provenance type, creating it on the first request.

        Raises
        ------
        UnsupportedProvenanceTypeError
            If no factory is registered for ``type_name``.
        """
        with self._lock:
            instance = self._instances.get(type_name)
            if instance is None:
                factory = self.get_factory(type_name)
                instance = factory()
                self._instances[type_name] = instance
                logger.debug("Created the extractor %s for %s.", type(instance).__name__, type_name)
            return instance

    def supported_types(self) -> list[str]:
        """Return the registered provenance types."""
        return sorted(self._factories)


def build_default_registry() -> ExtractorRegistry:
    """Build a registry with the extractors enabled in ``defaults.ini``.

    Returns
    -------
    ExtractorRegistry
        The registry.
    """
    registry = ExtractorRegistry()
    enabled = defaults.get_list("extractors", "enabled", fallback=list(EXTRACTOR_FACTORIES))
    for type_name in enabled:
        factory = EXTRACTOR_FACTORIES.get(type_name)
        if factory is None:
            logger.error("Ignoring the unknown extractor %s in defaults.ini.", type_name)
            continue
        registry.register_factory(type_name, factory)

    return registry
