# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The cache package contains the stores of verified reference values."""

from .base_cache import Cache
from .simple import SimpleCache
