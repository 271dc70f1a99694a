# -*- coding: utf-8 -*-
"""Location: ./webmerge/services/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Service layer: logging and the validation engine.
"""
