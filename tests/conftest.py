# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Fixtures for tests."""
import datetime
import os
from collections.abc import Mapping
from pathlib import Path
from typing import NoReturn

import pytest

from rvps.config.defaults import defaults, load_defaults
from rvps.extractors import BaseExtractor, ExtractorRegistry
from rvps.reference_value import ReferenceValue

# We need to pass fixture names as arguments to maintain an order.
# pylint: disable=redefined-outer-name


class StubExtractor(BaseExtractor):
    """An extractor returning a fixed digest and recording its calls."""

    def __init__(self, digest: str = "5f2b7c") -> None:
        self.digest = digest
        self.calls: list[tuple[str, dict[str, str], str]] = []

    def verify_and_extract(self, provenance: str, parameters: Mapping[str, str]) -> str:
        self.calls.append((provenance, dict(parameters), os.getcwd()))
        return self.digest


@pytest.fixture()
def test_dir() -> Path:
    """Set the root test_dir path.

    Returns
    -------
    Path
        The root path to the test directory.
    """
    return Path(__file__).parent


@pytest.fixture(autouse=True)
def setup_test(test_dir: Path) -> NoReturn:  # type: ignore
    """Load the packaged defaults.ini before each test and drop it afterwards.

    Parameters
    ----------
    test_dir: Path
        Depends on test_dir fixture.

    Returns
    -------
    NoReturn
    """
    # There is no user configuration in the test directory, only the packaged one is loaded.
    load_defaults(str(test_dir.joinpath("defaults.ini")))
    yield
    defaults.clear()


@pytest.fixture()
def stub_extractor() -> StubExtractor:
    """Return a stub extractor."""
    return StubExtractor()


@pytest.fixture()
def stub_registry(stub_extractor: StubExtractor) -> ExtractorRegistry:
    """Return a registry serving the stub extractor as the ``stub`` provenance type."""
    registry = ExtractorRegistry()
    registry.register_factory("stub", lambda: stub_extractor)
    return registry


@pytest.fixture()
def sample_reference_value() -> ReferenceValue:
    """Return a reference value with one hash value."""
    return (
        ReferenceValue()
        .set_version("1.0")
        .set_name("artifact")
        .set_expiration(datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc))
        .add_hash_value("sha512", "123")
    )
