"""Shared fixtures: importable patch operations and manifest files."""

import sys
import textwrap
import uuid

import pytest
import yaml


OPERATIONS_SOURCE = """
CALLS = []


def make(name):
    def op():
        CALLS.append(name)
    return op


apply_1 = make("apply_1")
apply_2 = make("apply_2")
apply_3 = make("apply_3")
rollback_1 = make("rollback_1")
rollback_2 = make("rollback_2")


def apply_broken():
    CALLS.append("apply_broken")
    raise RuntimeError("schema locked")


class nested:
    apply = staticmethod(make("nested_apply"))


not_callable = 42
"""


@pytest.fixture
def ops_module(tmp_path, monkeypatch):
    """
    Write a uniquely named module of patch operations and make it importable.

    Returns the imported module; operations append their name to CALLS.
    """
    name = f"patch_ops_{uuid.uuid4().hex[:8]}"
    (tmp_path / f"{name}.py").write_text(textwrap.dedent(OPERATIONS_SOURCE))
    monkeypatch.syspath_prepend(str(tmp_path))

    module = __import__(name)
    yield module
    sys.modules.pop(name, None)


@pytest.fixture
def write_manifest(tmp_path):
    """Write a manifest dict as YAML and return its path."""

    def _write(data, filename="patches.yaml"):
        path = tmp_path / filename
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    return _write


@pytest.fixture
def clean_env(monkeypatch):
    """Remove PATCH_CORE_* variables so settings use defaults."""
    for var in (
        "PATCH_CORE_MANIFEST",
        "PATCH_CORE_INITIAL_VERSION",
        "PATCH_CORE_LOG_LEVEL",
        "PATCH_CORE_LOG_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
