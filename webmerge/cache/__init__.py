# -*- coding: utf-8 -*-
"""Location: ./webmerge/cache/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Cache Package.
Provides the process-wide stylesheet to image reference map used to
propagate image changes into stylesheet validation tokens.
"""

# First-Party
from webmerge.cache.reference_tracker import ReferenceTracker

__all__ = ["ReferenceTracker"]
