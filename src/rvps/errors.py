# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains error classes for the Reference Value Provider Service."""


class RVPSError(Exception):
    """The base class for RVPS errors."""


class ConfigurationError(RVPSError):
    """Happens when there is an error in the configuration (.ini) file."""


class DuplicateError(RVPSError):
    """The class for errors for duplicated data."""


class ParameterError(RVPSError):
    """The base class for errors in the parameters handed to an extractor."""


class MissingParameterError(ParameterError):
    """Happens when a required parameter key is absent."""

    def __init__(self, key: str) -> None:
        super().__init__(f"The parameters do not indicate '{key}'.")
        self.key = key


class InvalidParameterError(ParameterError):
    """Happens when a parameter is present but its value cannot be parsed."""


class UnsupportedProvenanceTypeError(RVPSError):
    """Happens when no extractor is registered for a provenance type."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"RVPS extractors do not support the given provenance type: {type_name}.")
        self.type_name = type_name


class VerificationFailedError(RVPSError):
    """Happens when the provenance is rejected by its verifier."""


class ExtractionNotImplementedError(RVPSError):
    """Happens when a provenance is verified but its digest cannot be extracted yet."""


class WorkingDirectoryError(RVPSError):
    """Happens when the working directory of an extraction cannot be entered."""


class InvalidReferenceValueError(RVPSError):
    """Happens when a reference value is missing required content."""


class SerializationFailedError(RVPSError):
    """Happens when a reference value cannot be serialized or deserialized."""


class ChannelUnavailableError(RVPSError):
    """Happens when the publish channel cannot deliver a message."""


class CacheBackendError(RVPSError):
    """Happens when the storage backend of a cache fails."""
