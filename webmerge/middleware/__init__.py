# -*- coding: utf-8 -*-
"""Location: ./webmerge/middleware/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

ASGI middleware that puts the validation engine in front of a static resource app.
"""
