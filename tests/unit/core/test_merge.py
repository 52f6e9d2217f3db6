from __future__ import annotations

import pytest

from envboot.core.utils.merge import deep_merge

pytestmark = pytest.mark.fast


def test_nested_mappings_merge_and_inputs_are_untouched() -> None:
    base = {"help": {"width": 80}, "logging": {"level": "INFO"}}
    override = {"help": {"width": 100}, "paths": {"project_dir": ".boot"}}

    merged = deep_merge(base, override)

    assert merged == {
        "help": {"width": 100},
        "logging": {"level": "INFO"},
        "paths": {"project_dir": ".boot"},
    }
    assert base == {"help": {"width": 80}, "logging": {"level": "INFO"}}


def test_lists_replace_unless_marked_for_append() -> None:
    base = {"modules": {"shared_paths": ["/a"]}}

    assert deep_merge(base, {"modules": {"shared_paths": ["/b"]}}) == {"modules": {"shared_paths": ["/b"]}}
    assert deep_merge(base, {"modules": {"shared_paths": ["+", "/b"]}}) == {
        "modules": {"shared_paths": ["/a", "/b"]}
    }
    assert deep_merge({}, {"modules": {"shared_paths": ["+", "/b"]}}) == {"modules": {"shared_paths": ["/b"]}}


def test_scalar_replaces_mapping() -> None:
    assert deep_merge({"paths": {"project_dir": ".x"}}, {"paths": None}) == {"paths": None}
