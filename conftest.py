# -*- coding: utf-8 -*-
"""Root conftest.py for pytest configuration.

Keeps the repository root importable so tests can share ``tests.helpers``
and the doctests in ``webmerge`` resolve against the working tree.
"""
