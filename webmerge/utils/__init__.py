# -*- coding: utf-8 -*-
"""Location: ./webmerge/utils/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Pure helpers: path algebra, resource list parsing, header dates and fingerprints.
"""
