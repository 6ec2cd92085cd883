"""
Configuration for the condition builder.

Conversion defaults are read from ``config_defaults.json`` shipped beside
this module and can be overridden per `Config` instance.  The resulting
`ConversionOptions` are what the parser and serializer consume.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from . import package_logger
from .condition_tree import IdGenerator, shared_id_source

logger = package_logger(__name__)

DEFAULTS_FILE_NAME = "config_defaults.json"

# Fallback defaults used if the external defaults file cannot be read.
_FALLBACK_DEFAULTS: Dict[str, Any] = {
    "use_template_syntax": False,
    "max_depth": None,
    "id_prefix": "cond",
}

_TRUE_LITERALS = {"1", "true", "yes", "on", "y", "t"}
_FALSE_LITERALS = {"0", "false", "no", "off", "n", "f", ""}


def _load_defaults_from_file() -> Dict[str, Any]:
    defaults = dict(_FALLBACK_DEFAULTS)
    defaults_path = Path(__file__).resolve().with_name(DEFAULTS_FILE_NAME)
    try:
        raw = defaults_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(
            "Could not read defaults file '%s': %s; using built-in defaults",
            defaults_path,
            e,
        )
        return defaults

    try:
        loaded = json.loads(raw)
    except ValueError as e:
        logger.warning(
            "Failed parsing defaults file '%s': %s; using built-in defaults",
            defaults_path,
            e,
        )
        return defaults

    if not isinstance(loaded, dict):
        logger.warning(
            "Defaults file '%s' is not a JSON object; using built-in defaults",
            defaults_path,
        )
        return defaults

    for key, value in loaded.items():
        if isinstance(key, str):
            defaults[key] = value
    return defaults


# Defaults for all configuration keys. Loaded from config_defaults.json.
DEFAULTS = _load_defaults_from_file()


def _as_flag(value: Any, default: bool) -> bool:
    """Read a boolean setting that may arrive as a string from a form field."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_LITERALS:
            return True
        if normalized in _FALSE_LITERALS:
            return False
    return default


def _as_depth(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        depth = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid max_depth {value!r}")
        return None
    return depth if depth > 0 else None


@dataclass(frozen=True)
class ConversionOptions:
    """
    Options shared by `to_json_logic` and `from_json_logic`.

    Attributes:
        use_template_syntax: Write variable references as ``{{path}}``
            strings instead of ``{"var": path}`` nodes.
        max_depth: Deepest group nesting the parser lifts into groups;
            anything deeper is kept as an opaque row.  None means no cap.
    """
    use_template_syntax: bool = False
    max_depth: Optional[int] = None


class Config:
    """
    Holds conversion settings for one editor instance.

    Unset keys fall back to `DEFAULTS`.
    """

    def __init__(self, **overrides: Any) -> None:
        self._values: Dict[str, Any] = {}
        for key, value in overrides.items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key name.
            default: Default value if key not set (uses DEFAULTS if not provided).

        Returns:
            Configuration value, or default.
        """
        if key in self._values:
            return self._values[key]
        if default is None:
            default = DEFAULTS.get(key)
        return default

    def set(self, key: str, value: Any) -> None:
        if key not in DEFAULTS:
            logger.warning(f"Setting unknown config key '{key}'")
        self._values[key] = value
        logger.debug(f"Configuration '{key}' set to {value!r}")

    def delete(self, key: str) -> None:
        """Drop an override so the key reverts to its default."""
        self._values.pop(key, None)

    def options(self) -> ConversionOptions:
        """Build conversion options from the current settings."""
        return ConversionOptions(
            use_template_syntax=_as_flag(
                self.get("use_template_syntax"), bool(_FALLBACK_DEFAULTS["use_template_syntax"])
            ),
            max_depth=_as_depth(self.get("max_depth")),
        )

    def id_source(self) -> IdGenerator:
        """Return the process-wide id generator for the configured prefix."""
        return shared_id_source(str(self.get("id_prefix") or _FALLBACK_DEFAULTS["id_prefix"]))

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access."""
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        """Allow dictionary-style assignment."""
        self.set(key, value)


def resolve_options(
    options: Optional[ConversionOptions],
    use_template_syntax: Optional[bool] = None,
) -> ConversionOptions:
    """Merge an explicit ``use_template_syntax`` keyword over *options*."""
    if options is None:
        options = Config().options()
    if use_template_syntax is not None and use_template_syntax != options.use_template_syntax:
        options = ConversionOptions(
            use_template_syntax=use_template_syntax,
            max_depth=options.max_depth,
        )
    return options
