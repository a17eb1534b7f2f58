# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The extractor for in-toto supply chain metadata (https://in-toto.io)."""

import logging
import os
import subprocess  # nosec B404
from collections.abc import Mapping
from pathlib import Path

from rvps.config.defaults import defaults
from rvps.errors import ExtractionNotImplementedError, InvalidParameterError, VerificationFailedError
from rvps.extractors.base_extractor import WORKING_DIR_KEY, BaseExtractor
from rvps.json_tools import json_string_list

logger: logging.Logger = logging.getLogger(__name__)

#: The name under which this extractor is registered.
IN_TOTO_TYPE = "in-toto"


class InTotoExtractor(BaseExtractor):
    """Verify an in-toto layout and its link metadata.

    The provenance text is not used: the layout, the public keys and the link files are
    files inside the working directory, named by the following parameters.

    * ``layout_path``: the path to the root layout.
    * ``pub_key_paths``: a JSON array with the paths to the public keys of the layout.
    * ``intermediate_paths``: a JSON array with the paths to intermediate metadata
      that must be present next to the layout.
    * ``link_dir``: the directory of the link files.
    * ``line_normalization``: ``true`` or ``false``.
    """

    #: The fallback in-toto-verify executable.
    verifier: str = "in-toto-verify"

    #: The fallback timeout in seconds for one verification.
    timeout: float = 300

    def __init__(self) -> None:
        """Initialize the extractor with the values in ``defaults.ini``."""
        section = f"extractor.{IN_TOTO_TYPE}"
        if section in defaults:
            self.verifier = defaults.get(section, "verifier", fallback=self.verifier)
            try:
                self.timeout = defaults.getfloat(section, "timeout", fallback=self.timeout)
            except ValueError as error:
                logger.error(
                    "Failed to validate %s.timeout in defaults.ini. Falling back to the default timeout %s seconds: %s",
                    section,
                    self.timeout,
                    error,
                )

    def verify_and_extract(self, provenance: str, parameters: Mapping[str, str]) -> str:
        """Verify the in-toto metadata named in ``parameters``.

        The in-toto verification does not produce the digest of the final product, so a
        successful verification ends with ``ExtractionNotImplementedError``.

        Raises
        ------
        MissingParameterError
            If a required parameter is absent.
        InvalidParameterError
            If a parameter cannot be parsed.
        VerificationFailedError
            If in-toto rejects the metadata.
        ExtractionNotImplementedError
            If the verification succeeds.
        """
        layout_path = self.require_parameter(parameters, "layout_path")
        pub_key_paths = self._require_path_list(parameters, "pub_key_paths")
        intermediate_paths = self._require_path_list(parameters, "intermediate_paths")
        link_dir = self.require_parameter(parameters, "link_dir")
        line_normalization = self._require_bool(parameters, "line_normalization")

        if not pub_key_paths:
            raise InvalidParameterError("At least one public key is needed to verify the in-toto layout.")

        base_dir = Path(parameters.get(WORKING_DIR_KEY) or os.getcwd())
        for intermediate_path in intermediate_paths:
            if not base_dir.joinpath(intermediate_path).is_file():
                raise VerificationFailedError(f"The intermediate metadata {intermediate_path} does not exist.")

        logger.debug("Line normalization for in-toto verification: %s", line_normalization)
        self._run_verifier(base_dir, layout_path, pub_key_paths, link_dir)
        logger.info("Verified the in-toto layout %s.", layout_path)

        # The verification does not return the digest of the final product yet.
        raise ExtractionNotImplementedError("Can not extract hash value using in-toto")

    def _run_verifier(self, base_dir: Path, layout_path: str, pub_key_paths: list[str], link_dir: str) -> None:
        cmd = [
            self.verifier,
            "--layout",
            layout_path,
            "--verification-keys",
            *pub_key_paths,
            "--link-dir",
            link_dir,
        ]
        logger.debug("Running %s in %s", " ".join(cmd), base_dir)

        try:
            result = subprocess.run(  # nosec B603
                cmd,
                capture_output=True,
                cwd=base_dir,
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as error:
            raise VerificationFailedError(
                f"The in-toto verification did not finish within {self.timeout} seconds."
            ) from error
        except OSError as error:
            raise VerificationFailedError(f"Cannot run the in-toto verifier {self.verifier}: {error}") from error

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            logger.debug("Stderr:\n%s", stderr)
            raise VerificationFailedError(f"The in-toto verification failed: {stderr}")

    def _require_path_list(self, parameters: Mapping[str, str], key: str) -> list[str]:
        paths = json_string_list(self.require_parameter(parameters, key))
        if paths is None:
            raise InvalidParameterError(f"The parameter '{key}' is not a JSON array of paths.")
        return paths

    def _require_bool(self, parameters: Mapping[str, str], key: str) -> bool:
        value = self.require_parameter(parameters, key)
        if value == "true":
            return True
        if value == "false":
            return False
        raise InvalidParameterError(f"The parameter '{key}' must be 'true' or 'false', got {value!r}.")
