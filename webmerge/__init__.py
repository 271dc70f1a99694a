# -*- coding: utf-8 -*-
"""Location: ./webmerge/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

webmerge - resource identity and cache validation for merged static web resources.
"""

__author__ = "webmerge contributors"
__copyright__ = "Copyright 2025"
__license__ = "Apache 2.0"
__version__ = "1.0.0"
__description__ = "Resource identity and cache validation engine for merged static web resources"
__packages__ = ["webmerge"]
