# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for the extraction coordinator and its working directory sandbox."""

import datetime
import json
import os
import subprocess  # nosec B404
import threading
from collections.abc import Mapping
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from rvps.broadcaster import Broadcaster, Publisher
from rvps.cache import SimpleCache
from rvps.config.defaults import load_defaults
from rvps.coordinator import (
    SANDBOX_LOCK,
    ExtractionCoordinator,
    get_default_expiration,
    handle_and_broadcast,
    working_directory,
)
from rvps.errors import (
    ExtractionNotImplementedError,
    InvalidReferenceValueError,
    MissingParameterError,
    UnsupportedProvenanceTypeError,
    VerificationFailedError,
    WorkingDirectoryError,
)
from rvps.extractors import WORKING_DIR_KEY, BaseExtractor, ExtractorRegistry, build_default_registry
from rvps.reference_value import HashValuePair
from tests.conftest import StubExtractor

EXPIRATION = datetime.datetime(2030, 1, 1, tzinfo=datetime.timezone.utc)


class FailingExtractor(BaseExtractor):
    """An extractor rejecting every provenance."""

    def __init__(self) -> None:
        self.error = VerificationFailedError("rejected")
        self.cwd = ""

    def verify_and_extract(self, provenance: str, parameters: Mapping[str, str]) -> str:
        self.cwd = os.getcwd()
        raise self.error


class BlockingExtractor(BaseExtractor):
    """An extractor holding its first call until it is released."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.entered = [threading.Event(), threading.Event()]
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def verify_and_extract(self, provenance: str, parameters: Mapping[str, str]) -> str:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            index = len(self.calls)
            self.calls.append((parameters[WORKING_DIR_KEY], os.getcwd()))
        self.entered[index].set()
        self.release.wait(timeout=10)
        with self._guard:
            self.active -= 1
        return "5f2b7c"


class Sha384Extractor(StubExtractor):
    """An extractor reporting its own hash algorithm."""

    hash_algorithm = "sha384"


def test_handle_provenance(stub_registry: ExtractorRegistry, stub_extractor: StubExtractor, tmp_path: Path) -> None:
    """Test the reference value built from a verified provenance."""
    coordinator = ExtractionCoordinator(stub_registry)
    original_cwd = os.getcwd()

    reference_value = coordinator.handle_provenance(
        "stub", "artifact", "provenance", {WORKING_DIR_KEY: str(tmp_path), "key": "value"}, EXPIRATION
    )

    assert reference_value.name == "artifact"
    assert reference_value.version == "0.1"
    assert reference_value.expiration == EXPIRATION
    assert reference_value.hash_values == (HashValuePair("sha256", "5f2b7c"),)

    provenance, parameters, cwd = stub_extractor.calls[0]
    assert provenance == "provenance"
    assert parameters == {WORKING_DIR_KEY: str(tmp_path), "key": "value"}
    assert cwd == os.path.realpath(tmp_path)
    assert os.getcwd() == original_cwd


def test_extractor_hash_algorithm(tmp_path: Path) -> None:
    """Test that the hash algorithm reported by the extractor is recorded."""
    registry = ExtractorRegistry()
    registry.register_factory("stub", Sha384Extractor)
    reference_value = ExtractionCoordinator(registry).handle_provenance(
        "stub", "artifact", "", {WORKING_DIR_KEY: str(tmp_path)}
    )
    assert reference_value.hash_values == (HashValuePair("sha384", "5f2b7c"),)


def test_configured_hash_algorithm(stub_registry: ExtractorRegistry, tmp_path: Path) -> None:
    """Test the hash algorithm configured in defaults.ini."""
    user_config_path = os.path.join(tmp_path, "config.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write("[reference_value]\ndefault_hash_algorithm = sha512\n")

    load_defaults(user_config_path)
    reference_value = ExtractionCoordinator(stub_registry).handle_provenance(
        "stub", "artifact", "", {WORKING_DIR_KEY: str(tmp_path)}
    )
    assert reference_value.hash_values[0].alg == "sha512"


def test_default_expiration(stub_registry: ExtractorRegistry, tmp_path: Path) -> None:
    """Test that a reference value stays current for the configured number of days."""
    before = datetime.datetime.now(tz=datetime.timezone.utc).replace(microsecond=0)
    reference_value = ExtractionCoordinator(stub_registry).handle_provenance(
        "stub", "artifact", "", {WORKING_DIR_KEY: str(tmp_path)}
    )
    after = datetime.datetime.now(tz=datetime.timezone.utc)

    validity = datetime.timedelta(days=365)
    assert before + validity <= reference_value.expiration <= after + validity
    assert reference_value.expiration.microsecond == 0


def test_invalid_validity_days(tmp_path: Path) -> None:
    """Test that an invalid validity in defaults.ini falls back to one year."""
    user_config_path = os.path.join(tmp_path, "config.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write("[reference_value]\nvalidity_days = forever\n")

    load_defaults(user_config_path)
    expiration = get_default_expiration()
    expected = datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(days=365)
    assert abs(expected - expiration) < datetime.timedelta(minutes=1)


def test_relative_working_dir(stub_registry: ExtractorRegistry, stub_extractor: StubExtractor, tmp_path: Path) -> None:
    """Test that the extractor receives the working directory as an absolute path."""
    tmp_path.joinpath("sandbox").mkdir()
    with working_directory(str(tmp_path)):
        ExtractionCoordinator(stub_registry).handle_provenance("stub", "artifact", "", {WORKING_DIR_KEY: "sandbox"})

    _, parameters, cwd = stub_extractor.calls[0]
    assert os.path.isabs(parameters[WORKING_DIR_KEY])
    assert os.path.realpath(parameters[WORKING_DIR_KEY]) == cwd == os.path.realpath(tmp_path.joinpath("sandbox"))


def test_extractor_error_restores_cwd(tmp_path: Path) -> None:
    """Test that the error of the extractor propagates unchanged and the working directory is restored."""
    extractor = FailingExtractor()
    registry = ExtractorRegistry()
    registry.register_factory("failing", lambda: extractor)
    original_cwd = os.getcwd()

    with pytest.raises(VerificationFailedError) as exc_info:
        ExtractionCoordinator(registry).handle_provenance("failing", "artifact", "", {WORKING_DIR_KEY: str(tmp_path)})

    assert exc_info.value is extractor.error
    assert extractor.cwd == os.path.realpath(tmp_path)
    assert os.getcwd() == original_cwd
    assert not SANDBOX_LOCK.locked()


def test_missing_working_dir(stub_registry: ExtractorRegistry, stub_extractor: StubExtractor) -> None:
    """Test that the extractor does not run without a working directory."""
    with pytest.raises(MissingParameterError) as exc_info:
        ExtractionCoordinator(stub_registry).handle_provenance("stub", "artifact", "", {"key": "value"})
    assert exc_info.value.key == WORKING_DIR_KEY
    assert not stub_extractor.calls


def test_nonexistent_working_dir(
    stub_registry: ExtractorRegistry, stub_extractor: StubExtractor, tmp_path: Path
) -> None:
    """Test a working directory which cannot be entered."""
    original_cwd = os.getcwd()
    with pytest.raises(WorkingDirectoryError):
        ExtractionCoordinator(stub_registry).handle_provenance(
            "stub", "artifact", "", {WORKING_DIR_KEY: str(tmp_path.joinpath("missing"))}
        )
    assert not stub_extractor.calls
    assert os.getcwd() == original_cwd
    assert not SANDBOX_LOCK.locked()


def test_unsupported_type(stub_registry: ExtractorRegistry, tmp_path: Path) -> None:
    """Test a provenance type without an extractor."""
    with pytest.raises(UnsupportedProvenanceTypeError):
        ExtractionCoordinator(stub_registry).handle_provenance("foo", "artifact", "", {WORKING_DIR_KEY: str(tmp_path)})


def test_empty_artifact_name(stub_registry: ExtractorRegistry, stub_extractor: StubExtractor, tmp_path: Path) -> None:
    """Test that a reference value needs an artifact name."""
    with pytest.raises(InvalidReferenceValueError):
        ExtractionCoordinator(stub_registry).handle_provenance("stub", "", "", {WORKING_DIR_KEY: str(tmp_path)})
    assert not stub_extractor.calls


def test_default_registry() -> None:
    """Test that the coordinator uses the extractors enabled in defaults.ini by default."""
    assert ExtractionCoordinator().registry.supported_types() == build_default_registry().supported_types()


def test_working_directory(tmp_path: Path) -> None:
    """Test that the working directory is restored when the body raises."""
    original_cwd = os.getcwd()
    with pytest.raises(RuntimeError):
        with working_directory(str(tmp_path)) as cwd:
            assert cwd == os.path.realpath(tmp_path)
            raise RuntimeError("failure in the sandbox")
    assert os.getcwd() == original_cwd


def test_handle_and_broadcast(stub_registry: ExtractorRegistry, tmp_path: Path) -> None:
    """Test that the extracted reference value is stored and published."""
    publisher = MagicMock(spec=Publisher)
    broadcaster = Broadcaster(SimpleCache(), publisher)

    reference_value = handle_and_broadcast(
        ExtractionCoordinator(stub_registry),
        broadcaster,
        "stub",
        "artifact",
        "",
        {WORKING_DIR_KEY: str(tmp_path)},
        EXPIRATION,
    )

    assert broadcaster.get("artifact") == reference_value
    publisher.publish.assert_called_once()


def test_in_toto_nothing_broadcast(tmp_path: Path) -> None:
    """Test that a verified in-toto provenance is neither stored nor published."""
    for name in ["demo.layout", "alice.pub"]:
        tmp_path.joinpath(name).write_text("{}", encoding="utf-8")
    parameters = {
        WORKING_DIR_KEY: str(tmp_path),
        "layout_path": "demo.layout",
        "pub_key_paths": json.dumps(["alice.pub"]),
        "intermediate_paths": "[]",
        "link_dir": ".",
        "line_normalization": "false",
    }
    publisher = MagicMock(spec=Publisher)
    broadcaster = Broadcaster(SimpleCache(), publisher)
    original_cwd = os.getcwd()

    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"", stderr=b"")
    with patch("subprocess.run", return_value=completed):
        with pytest.raises(ExtractionNotImplementedError):
            handle_and_broadcast(ExtractionCoordinator(), broadcaster, "in-toto", "artifact", "", parameters)

    assert not broadcaster.get_all()
    publisher.publish.assert_not_called()
    assert os.getcwd() == original_cwd


def test_extractions_do_not_overlap(tmp_path: Path) -> None:
    """Test that an extraction waits until the running one has left its working directory."""
    extractor = BlockingExtractor()
    registries = [ExtractorRegistry(), ExtractorRegistry()]
    for registry in registries:
        registry.register_factory("blocking", lambda: extractor)
    first_dir = tmp_path.joinpath("first")
    second_dir = tmp_path.joinpath("second")
    first_dir.mkdir()
    second_dir.mkdir()
    original_cwd = os.getcwd()
    results = []

    def extract(registry: ExtractorRegistry, working_dir: Path) -> None:
        results.append(
            ExtractionCoordinator(registry).handle_provenance(
                "blocking", working_dir.name, "", {WORKING_DIR_KEY: str(working_dir)}, EXPIRATION
            )
        )

    first = threading.Thread(target=extract, args=(registries[0], first_dir))
    second = threading.Thread(target=extract, args=(registries[1], second_dir))
    first.start()
    assert extractor.entered[0].wait(timeout=10)

    second.start()
    assert not extractor.entered[1].wait(timeout=0.5)
    assert os.getcwd() == os.path.realpath(first_dir)

    extractor.release.set()
    first.join(timeout=10)
    second.join(timeout=10)

    assert extractor.max_active == 1
    assert extractor.calls == [
        (str(first_dir), os.path.realpath(first_dir)),
        (str(second_dir), os.path.realpath(second_dir)),
    ]
    assert sorted(reference_value.name for reference_value in results) == ["first", "second"]
    assert os.getcwd() == original_cwd
    assert not SANDBOX_LOCK.locked()
