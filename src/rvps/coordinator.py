# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module turns provenances into reference values.

Each extractor runs with the working directory of the process switched to the
``working_dir`` parameter, usually a temporary directory holding the files of the
provenance. The working directory is process-wide state, so extractions in one process
are serialized by ``SANDBOX_LOCK`` and the original working directory is restored
whatever the outcome of the extractor.
"""

import datetime
import logging
import os
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from rvps.broadcaster import Broadcaster
from rvps.config.defaults import defaults
from rvps.errors import InvalidReferenceValueError, MissingParameterError, WorkingDirectoryError
from rvps.extractors import WORKING_DIR_KEY, ExtractorRegistry, build_default_registry
from rvps.reference_value import ReferenceValue

logger: logging.Logger = logging.getLogger(__name__)

#: Serializes the extractions of the process, which share one working directory.
SANDBOX_LOCK = threading.Lock()


@contextmanager
def working_directory(path: str) -> Iterator[str]:
    """Switch the working directory of the process to ``path`` and always switch it back.

    Parameters
    ----------
    path : str
        The directory to work in.

    Yields
    ------
    str
        The absolute path of the working directory.

    Raises
    ------
    WorkingDirectoryError
        If the process cannot enter ``path``. The working directory is unchanged.
    """
    original = os.getcwd()
    try:
        os.chdir(path)
    except OSError as error:
        raise WorkingDirectoryError(f"Cannot enter the working directory {path}: {error}") from error

    try:
        yield os.getcwd()
    finally:
        os.chdir(original)


def get_default_expiration() -> datetime.datetime:
    """Return the expiration time of a reference value extracted now.

    The validity is ``[reference_value] validity_days`` in ``defaults.ini``.
    """
    validity_days = 365
    try:
        validity_days = defaults.getint("reference_value", "validity_days", fallback=validity_days)
    except ValueError as error:
        logger.error(
            "Failed to validate reference_value.validity_days in defaults.ini. Falling back to %s days: %s",
            validity_days,
            error,
        )
    return datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(days=validity_days)


class ExtractionCoordinator:
    """Verify provenances with the registered extractors and build the reference values."""

    def __init__(self, registry: ExtractorRegistry | None = None) -> None:
        """Initialize instance.

        Parameters
        ----------
        registry : ExtractorRegistry | None
            The registry of extractors. The extractors enabled in ``defaults.ini`` are used if it is None.
        """
        self.registry = registry if registry is not None else build_default_registry()

    def handle_provenance(
        self,
        provenance_type: str,
        artifact_name: str,
        provenance: str,
        parameters: Mapping[str, str],
        expiration: datetime.datetime | None = None,
    ) -> ReferenceValue:
        """Verify a provenance and return the reference value of the artifact it attests.

        Parameters
        ----------
        provenance_type : str
            The provenance format, e.g. ``in-toto``.
        artifact_name : str
            The name of the artifact.
        provenance : str
            The provenance document. It can be empty for extractors reading files.
        parameters : Mapping[str, str]
            The inputs of the extractor. ``working_dir`` is required.
        expiration : datetime.datetime | None
            The expiration time of the reference value. ``get_default_expiration`` applies if it is None.

        Returns
        -------
        ReferenceValue
            The reference value.

        Raises
        ------
        InvalidReferenceValueError
            If the artifact name is empty.
        UnsupportedProvenanceTypeError
            If no extractor is registered for ``provenance_type``.
        MissingParameterError
            If ``working_dir``, or a parameter required by the extractor, is absent.
        WorkingDirectoryError
            If the working directory cannot be entered.
        RVPSError
            Any error of the extractor, unchanged.
        """
        if not artifact_name:
            raise InvalidReferenceValueError("The artifact name of a reference value cannot be empty.")

        extractor = self.registry.get_or_create_instance(provenance_type)

        working_dir = parameters.get(WORKING_DIR_KEY)
        if working_dir is None:
            raise MissingParameterError(WORKING_DIR_KEY)

        # Extractors see an absolute working directory, so they do not depend on the ambient one.
        working_dir = os.path.abspath(working_dir)
        sandbox_parameters = {**parameters, WORKING_DIR_KEY: working_dir}

        logger.info("Verifying the %s provenance of %s.", provenance_type, artifact_name)
        with SANDBOX_LOCK, working_directory(working_dir):
            digest = extractor.verify_and_extract(provenance, sandbox_parameters)

        hash_algorithm = extractor.hash_algorithm or defaults.get(
            "reference_value", "default_hash_algorithm", fallback="sha256"
        )
        reference_value = ReferenceValue(
            name=artifact_name,
            expiration=expiration if expiration is not None else get_default_expiration(),
        ).add_hash_value(hash_algorithm, digest)

        logger.info("Extracted the %s digest of %s.", hash_algorithm, artifact_name)
        return reference_value


def handle_and_broadcast(
    coordinator: ExtractionCoordinator,
    broadcaster: Broadcaster,
    provenance_type: str,
    artifact_name: str,
    provenance: str,
    parameters: Mapping[str, str],
    expiration: datetime.datetime | None = None,
) -> ReferenceValue:
    """Extract the reference value of a provenance, then store and publish it.

    Nothing is stored or published if the extraction fails.

    Returns
    -------
    ReferenceValue
        The stored reference value.
    """
    reference_value = coordinator.handle_provenance(provenance_type, artifact_name, provenance, parameters, expiration)
    broadcaster.store_and_publish(reference_value)
    return reference_value
