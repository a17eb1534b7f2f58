# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The extractors package contains the supported provenance extractors and their registry."""

from .base_extractor import WORKING_DIR_KEY, BaseExtractor
from .registry import EXTRACTOR_FACTORIES, ExtractorFactory, ExtractorRegistry, build_default_registry
