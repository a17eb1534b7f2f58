# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module provides utility functions for JSON data."""
import json
import logging

JsonType = int | float | str | None | bool | list["JsonType"] | dict[str, "JsonType"]

logger: logging.Logger = logging.getLogger(__name__)


def json_string_list(text: str) -> list[str] | None:
    """Return the list of strings encoded as a JSON array in the passed text.

    Parameters
    ----------
    text: str
        The JSON text, e.g. ``["alice.pub", "bob.pub"]``.

    Returns
    -------
    list[str] | None:
        The strings in the array, or None if the text is not a JSON array of strings.
    """
    try:
        content = json.loads(text)
    except (json.JSONDecodeError, TypeError) as error:
        logger.debug("Cannot decode %r as JSON: %s", text, error)
        return None

    if not isinstance(content, list):
        logger.debug("Found value of incorrect type: %s instead of list.", type(content))
        return None

    if not all(isinstance(element, str) for element in content):
        logger.debug("The JSON array %r contains non-string elements.", text)
        return None

    return content
