"""Tests for the top-level package layout."""

from pathlib import Path
import pytest

ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize("package", ["config", "profile_edit", "storage", "utils", "web"])
def test_packages_are_namespace_packages(package):
    assert not list((ROOT / package).rglob("__init__.py"))
