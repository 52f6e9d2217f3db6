"""
envboot configuration management (YAML layers + ENVBOOT_* environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from envboot.core.errors import ConfigError
from envboot.core.paths import PROJECT_DIR_NAME, find_project_root, get_user_home
from envboot.core.schemas import validate_payload_safe
from envboot.core.utils.io import read_yaml
from envboot.core.utils.merge import deep_merge
from envboot.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "ENVBOOT_"
CONFIG_FILENAME = "config.yaml"
SCHEMA_NAME = "config"

_NULL_WORDS = frozenset({"null", "none", "~"})
_BOOL_WORDS = {"true": True, "false": False}
_INT_RE = re.compile(r"[-+]?\d+")
_FLOAT_RE = re.compile(r"[-+]?(\d+\.\d*|\d*\.\d+)")


def coerce_env_value(value: str) -> Any:
    """Type an environment override value.

    ``null``/``none``/``~`` become None, ``true``/``false`` booleans, then
    integers, floats and JSON objects or arrays; anything else stays a
    (stripped) string.
    """
    text = value.strip()
    word = text.lower()
    if word in _NULL_WORDS:
        return None
    if word in _BOOL_WORDS:
        return _BOOL_WORDS[word]
    if _INT_RE.fullmatch(text):
        return int(text)
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    if text[:1] + text[-1:] in ("{}", "[]"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass
    return text


class ConfigManager:
    """Load, merge, and validate envboot configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: ENVBOOT_<SECTION>__<KEY>
    2. Project config: <project_root>/.envboot/config.yaml
    3. User config: <ENVBOOT_HOME or ~/.envboot>/config.yaml
    4. Bundled defaults: envboot.data/config/defaults.yaml

    Only variables with at least one ``__`` separator are treated as
    overrides, so ENVBOOT_HOME and ENVBOOT_PROJECT_ROOT stay plain settings.
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(
        self,
        project_root: Optional[Path] = None,
        *,
        user_home: Optional[Path] = None,
        discover_project: bool = True,
    ) -> None:
        if project_root is None and discover_project:
            project_root = find_project_root()
        self.project_root: Optional[Path] = Path(project_root) if project_root else None
        self.user_home = Path(user_home) if user_home else get_user_home()
        self.defaults_path = get_data_path("config", "defaults.yaml")
        self.user_config_path = self.user_home / CONFIG_FILENAME

    def project_config_path(self, project_dir: str = PROJECT_DIR_NAME) -> Optional[Path]:
        if self.project_root is None:
            return None
        return self.project_root / project_dir / CONFIG_FILENAME

    def layer_paths(self, cfg: Optional[Dict[str, Any]] = None) -> List[Tuple[str, Path]]:
        """Return (layer name, path) pairs in merge order, existing or not."""
        project_dir = PROJECT_DIR_NAME
        if cfg is not None:
            project_dir = (cfg.get("paths") or {}).get("project_dir") or PROJECT_DIR_NAME
        layers = [("defaults", self.defaults_path), ("user", self.user_config_path)]
        project_path = self.project_config_path(project_dir)
        if project_path is not None:
            layers.append(("project", project_path))
        return layers

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = read_yaml(path, default={}, raise_on_error=path.exists())
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        return data

    # ---------- environment overrides ----------

    def _parse_env_key(self, raw: str) -> List[Union[str, int, object]]:
        processed: List[Union[str, int, object]] = []
        for seg in raw.split("__"):
            if seg == "":
                raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'")
            if seg.isdigit():
                processed.append(int(seg))
            elif seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self) -> Iterator[Tuple[List[Union[str, int, object]], Any, str]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX) :]
            if "__" not in raw:
                continue
            yield self._parse_env_key(raw), coerce_env_value(os.environ[key]), key

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int, object]], value: Any) -> None:
        cur: Any = root
        for i, part in enumerate(path[:-1]):
            if isinstance(part, int) or part is self.ARRAY_APPEND_MARKER:
                raise ConfigError("Invalid override path: list index/APPEND may only appear at the end")
            if not isinstance(cur, dict):
                raise ConfigError("Invalid override path: traverses a non-mapping value")
            nxt = path[i + 1]
            if cur.get(part) is None:
                cur[part] = [] if (isinstance(nxt, int) or nxt is self.ARRAY_APPEND_MARKER) else {}
            cur = cur[part]

        leaf = path[-1]
        if leaf is self.ARRAY_APPEND_MARKER:
            if not isinstance(cur, list):
                raise ConfigError("APPEND requires a list")
            cur.append(value)
        elif isinstance(leaf, int):
            if not isinstance(cur, list):
                raise ConfigError("Index assignment requires a list")
            while len(cur) <= leaf:
                cur.append(None)
            cur[leaf] = value
        else:
            if not isinstance(cur, dict):
                raise ConfigError("Key assignment requires a mapping")
            cur[leaf] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value, key in self._iter_env_overrides():
            logger.debug("Applying environment override %s", key)
            try:
                self._set_nested(cfg, path, typed_value)
            except ConfigError as exc:
                raise ConfigError(f"{key}: {exc}") from exc

    # ---------- loading ----------

    def load_config(self, *, validate: bool = True, include_env: bool = True) -> Dict[str, Any]:
        """Merge all layers and return the effective configuration.

        Raises:
            ConfigError: A layer is unreadable or the result violates the schema.
        """
        cfg: Dict[str, Any] = self.load_yaml(self.defaults_path)
        # The project directory name itself is configurable, so the project
        # layer is located using the defaults and user layers.
        cfg = deep_merge(cfg, self.load_yaml(self.user_config_path))
        for name, path in self.layer_paths(cfg)[2:]:
            logger.debug("Loading %s configuration from %s", name, path)
            cfg = deep_merge(cfg, self.load_yaml(path))

        if include_env:
            self.apply_env_overrides(cfg)

        if validate:
            errors = validate_payload_safe(cfg, SCHEMA_NAME)
            if errors:
                raise ConfigError("Invalid configuration: " + "; ".join(errors))
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Return a dotted key (e.g. ``help.width``) from the effective config."""
        return get_value(self.load_config(), key, default)


def get_value(cfg: Dict[str, Any], key: str, default: Any = None) -> Any:
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


__all__ = ["ENV_PREFIX", "ConfigManager", "coerce_env_value", "get_value"]
