"""Shared fixtures for stepflow tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from stepflow.ui.console import Console


@pytest.fixture
def console() -> Console:
    return Console()


@pytest.fixture
def write_workflow(tmp_path: Path):
    """Write a dedented YAML document to tmp_path and return its path."""

    def _write(text: str, name: str = "workflow.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    return _write
