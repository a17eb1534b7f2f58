# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The broadcaster package stores verified reference values and notifies their subscribers."""

from .broadcaster import Broadcaster, build_default_broadcaster
from .publisher import Publisher, RedisPublisher
