# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the base class that every provenance extractor implements."""

import abc
import logging
from collections.abc import Mapping

from rvps.errors import MissingParameterError

logger: logging.Logger = logging.getLogger(__name__)

#: The parameter naming the directory an extractor runs in. Every extraction requires it.
WORKING_DIR_KEY = "working_dir"


class BaseExtractor(abc.ABC):
    """The base class of the verifier and extractor for one provenance format.

    An extractor may read files relative to the current working directory of the process.
    It must not restore the working directory itself: the caller sandboxes each call.
    """

    #: The hash algorithm of the digests returned by this extractor.
    #: None means the default algorithm in ``defaults.ini`` applies.
    hash_algorithm: str | None = None

    @abc.abstractmethod
    def verify_and_extract(self, provenance: str, parameters: Mapping[str, str]) -> str:
        """Verify the provenance and extract the digest of the artifact it attests.

        Parameters
        ----------
        provenance : str
            The raw or encoded provenance document. It can be empty if the extractor
            reads its inputs from files named in ``parameters``.
        parameters : Mapping[str, str]
            The format-specific inputs of the extractor, e.g. file paths and flags.

        Returns
        -------
        str
            The extracted digest.

        Raises
        ------
        MissingParameterError
            If a required parameter is absent.
        VerificationFailedError
            If the provenance is rejected.
        ExtractionNotImplementedError
            If the provenance is verified but the digest extraction is not implemented.
        """

    @staticmethod
    def require_parameter(parameters: Mapping[str, str], key: str) -> str:
        """Return the value of a required parameter.

        Raises
        ------
        MissingParameterError
            If ``key`` is not in ``parameters``.
        """
        try:
            return parameters[key]
        except KeyError as error:
            raise MissingParameterError(key) from error
