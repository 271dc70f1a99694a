# -*- coding: utf-8 -*-
"""Location: ./tests/unit/webmerge/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared fixtures: a temporary document root and an engine bound to it.
"""

# Standard
from pathlib import Path
from typing import Callable

# Third-Party
import pytest

# First-Party
from tests.helpers.file_times import BASE_MILLIS, set_mtime
from webmerge.cache.reference_tracker import ReferenceTracker
from webmerge.services.validation_service import ValidationEngine
from webmerge.storage import DocumentRootResolver, LocalFileMetadataProvider


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """Empty document root."""
    root = tmp_path / "www"
    root.mkdir()
    return root


@pytest.fixture
def write_file(docroot: Path) -> Callable[..., Path]:
    """Create a file under the document root with an explicit mtime."""

    def _write(relative: str, content: str = "", millis: int = BASE_MILLIS) -> Path:
        path = docroot / relative.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        set_mtime(path, millis)
        return path

    return _write


@pytest.fixture
def files() -> LocalFileMetadataProvider:
    """Local metadata provider."""
    return LocalFileMetadataProvider()


@pytest.fixture
def tracker(files: LocalFileMetadataProvider) -> ReferenceTracker:
    """Fresh reference tracker."""
    return ReferenceTracker(files)


@pytest.fixture
def engine(docroot: Path, files: LocalFileMetadataProvider, tracker: ReferenceTracker) -> ValidationEngine:
    """Engine resolving logical paths under ``docroot``."""
    return ValidationEngine(DocumentRootResolver(str(docroot)), files=files, tracker=tracker)
