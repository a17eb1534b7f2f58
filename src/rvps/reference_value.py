# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the reference value record and its JSON wire form.

A reference value is consumed by the Attestation Service. It is not the same as the
"Reference Value" of IETF RATS, and its format may change to follow the Attestation Service.

The wire form of a reference value is a JSON object:

.. code-block:: json

    {
        "version": "0.1",
        "name": "artifact",
        "expired": "1970-01-01T00:00:00Z",
        "hash-value": [{"alg": "sha512", "value": "123"}]
    }
"""

from __future__ import annotations

import datetime
import json
import re
from dataclasses import dataclass, field, replace

from rvps.errors import SerializationFailedError
from rvps.json_tools import JsonType

#: The default version of the reference value format.
REFERENCE_VALUE_VERSION = "0.1"

# The only accepted representation of the ``expired`` field.
_EXPIRED_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$", re.ASCII)
_EXPIRED_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc).replace(microsecond=0)


def normalize_expiration(expiration: datetime.datetime) -> datetime.datetime:
    """Convert a timezone-aware datetime to UTC with second precision.

    Parameters
    ----------
    expiration : datetime.datetime
        The expiration time.

    Returns
    -------
    datetime.datetime
        The normalized expiration time.

    Raises
    ------
    TypeError
        If the datetime has no timezone information.
    """
    if expiration.tzinfo is None:
        raise TypeError("tzinfo is required")
    return expiration.astimezone(datetime.timezone.utc).replace(microsecond=0)


def format_expiration(expiration: datetime.datetime) -> str:
    """Return the ``YYYY-MM-DDTHH:MM:SSZ`` representation of a UTC datetime."""
    return (
        f"{expiration.year:04d}-{expiration.month:02d}-{expiration.day:02d}"
        f"T{expiration.hour:02d}:{expiration.minute:02d}:{expiration.second:02d}Z"
    )


def parse_expiration(value: JsonType) -> datetime.datetime:
    """Parse the ``expired`` field of the wire form.

    Parameters
    ----------
    value : JsonType
        The value of the ``expired`` field.

    Returns
    -------
    datetime.datetime
        The timezone-aware UTC datetime.

    Raises
    ------
    SerializationFailedError
        If the value is missing or does not follow ``YYYY-MM-DDTHH:MM:SSZ``.
    """
    if value is None:
        raise SerializationFailedError("The 'expired' field of the reference value is missing.")
    if not isinstance(value, str) or not _EXPIRED_PATTERN.match(value):
        raise SerializationFailedError(f"The 'expired' field of the reference value is malformed: {value!r}.")
    try:
        parsed = datetime.datetime.strptime(value, _EXPIRED_FORMAT)
    except ValueError as error:
        raise SerializationFailedError(
            f"The 'expired' field of the reference value is malformed: {value!r}."
        ) from error
    return parsed.replace(tzinfo=datetime.timezone.utc)


@dataclass(frozen=True)
class HashValuePair:
    """A hash algorithm name and the artifact's digest computed with that algorithm."""

    #: The name of the hash algorithm, e.g. ``sha256``.
    alg: str
    #: The digest.
    value: str


@dataclass(frozen=True)
class ReferenceValue:
    """The expected digests of an artifact and the time until which they are current.

    Instances are immutable. The ``set_*`` and ``add_hash_value`` methods return
    a new instance, so a reference value can be built step by step:

    >>> rv = ReferenceValue().set_name("artifact").add_hash_value("sha512", "123")
    >>> rv.name
    'artifact'
    """

    #: The version of the reference value format.
    version: str = REFERENCE_VALUE_VERSION
    #: The name of the artifact. It is the key of the reference value in a cache.
    name: str = ""
    #: The time after which this reference value is no longer trusted to be current.
    expiration: datetime.datetime = field(default_factory=_utc_now)
    #: The (algorithm, digest) pairs of the artifact, in insertion order.
    hash_values: tuple[HashValuePair, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "expiration", normalize_expiration(self.expiration))
        object.__setattr__(self, "hash_values", tuple(self.hash_values))

    def set_version(self, version: str) -> ReferenceValue:
        """Return a copy with the given format version."""
        return replace(self, version=version)

    def set_name(self, name: str) -> ReferenceValue:
        """Return a copy with the given artifact name."""
        return replace(self, name=name)

    def set_expiration(self, expiration: datetime.datetime) -> ReferenceValue:
        """Return a copy with the given expiration time."""
        return replace(self, expiration=expiration)

    def add_hash_value(self, alg: str, value: str) -> ReferenceValue:
        """Return a copy with one more (algorithm, digest) pair appended."""
        return replace(self, hash_values=(*self.hash_values, HashValuePair(alg, value)))

    def to_dict(self) -> dict[str, JsonType]:
        """Return the wire form of this reference value as a JSON object.

        Raises
        ------
        SerializationFailedError
            If a field does not hold a string.
        """
        for label, content in (("version", self.version), ("name", self.name)):
            if not isinstance(content, str):
                raise SerializationFailedError(f"The '{label}' field of the reference value is not a string.")

        hash_values: list[JsonType] = []
        for pair in self.hash_values:
            if not isinstance(pair.alg, str) or not isinstance(pair.value, str):
                raise SerializationFailedError(f"The hash value pair {pair} does not hold strings.")
            hash_values.append({"alg": pair.alg, "value": pair.value})

        return {
            "version": self.version,
            "name": self.name,
            "expired": format_expiration(self.expiration),
            "hash-value": hash_values,
        }

    @classmethod
    def from_dict(cls, data: dict[str, JsonType]) -> ReferenceValue:
        """Build a reference value from its wire form.

        Parameters
        ----------
        data : dict[str, JsonType]
            The JSON object.

        Returns
        -------
        ReferenceValue
            The reference value.

        Raises
        ------
        SerializationFailedError
            If the JSON object is not a valid reference value.
        """
        if not isinstance(data, dict):
            raise SerializationFailedError("The reference value is not a JSON object.")

        version = data.get("version", REFERENCE_VALUE_VERSION)
        if not isinstance(version, str):
            raise SerializationFailedError("The 'version' field of the reference value is not a string.")

        name = data.get("name")
        if not isinstance(name, str):
            raise SerializationFailedError("The 'name' field of the reference value is missing or not a string.")

        expiration = parse_expiration(data.get("expired"))

        raw_hash_values = data.get("hash-value")
        if not isinstance(raw_hash_values, list):
            raise SerializationFailedError("The 'hash-value' field of the reference value is missing or not a list.")

        hash_values = []
        for entry in raw_hash_values:
            if not isinstance(entry, dict):
                raise SerializationFailedError(f"Invalid hash value entry: {entry!r}.")
            alg = entry.get("alg")
            value = entry.get("value")
            if not isinstance(alg, str) or not isinstance(value, str):
                raise SerializationFailedError(f"Invalid hash value entry: {entry!r}.")
            hash_values.append(HashValuePair(alg, value))

        return cls(version=version, name=name, expiration=expiration, hash_values=tuple(hash_values))


def serialize(reference_value: ReferenceValue) -> str:
    """Serialize a reference value to its canonical JSON text.

    Parameters
    ----------
    reference_value : ReferenceValue
        The reference value.

    Returns
    -------
    str
        The JSON text.

    Raises
    ------
    SerializationFailedError
        If the reference value cannot be serialized.
    """
    try:
        return json.dumps(reference_value.to_dict())
    except (TypeError, ValueError) as error:
        raise SerializationFailedError(f"Cannot serialize the reference value: {error}") from error


def deserialize(text: str | bytes) -> ReferenceValue:
    """Deserialize a reference value from its JSON text.

    Parameters
    ----------
    text : str | bytes
        The JSON text.

    Returns
    -------
    ReferenceValue
        The reference value.

    Raises
    ------
    SerializationFailedError
        If the text is not a valid reference value.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as error:
        raise SerializationFailedError("Cannot deserialize the reference value as JSON.") from error

    return ReferenceValue.from_dict(data)
