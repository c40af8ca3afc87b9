"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, get_type_hints

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
ENV_PREFIX = "FIELDSIGN_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Editor": {
        "default_field_width": "150",
        "default_field_height": "40",
        "min_field_width": "50",
        "min_field_height": "30",
    },
    "Signing": {
        "render_text": "false",
        "text_font": "Helvetica",
        "text_font_size": "12",
        "text_padding": "5",
        "border_width": "1",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class EditorConfig:
    """Sizes in viewport pixels."""
    default_field_width: float = 150.0
    default_field_height: float = 40.0
    min_field_width: float = 50.0
    min_field_height: float = 30.0


@dataclass
class SigningConfig:
    """Text-path rendering options, in PDF points."""
    render_text: bool = False
    text_font: str = "Helvetica"
    text_font_size: float = 12.0
    text_padding: float = 5.0
    border_width: float = 1.0


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Mapping[str, Mapping[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: type) -> Any:
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        val = data.get(f.name, f.default)
        try:
            kwargs[f.name] = _cast(val, hints[f.name])
        except (TypeError, ValueError) as ex:
            raise ValueError(f"Invalid value for '{cls.__name__}.{f.name}': {val!r}") from ex
    return cls(**kwargs)


def _env_overlays(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "fieldsign" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "fieldsign" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """
    Facade merging layered configuration with type safety.

    Precedence (low -> high): embedded defaults, defaults.ini, user INI,
    environment (``FIELDSIGN_<SECTION>__<KEY>``).
    """

    def __init__(self, *, defaults_ini: Optional[Path] = None, user_ini: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None) -> None:
        self._lock = RLock()
        self._defaults_ini = Path(defaults_ini) if defaults_ini else DEFAULTS_INI
        self._user_ini = Path(user_ini) if user_ini else _user_config_path()
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini", str(self._defaults_ini), sources)

            # Layer 2: user overrides
            if self._user_ini.exists():
                _apply(merged, _read_ini(self._user_ini), "user", str(self._user_ini), sources)

            # Layer 3: environment variables
            env = _env_overlays(os.environ if self._environ is None else self._environ)
            _apply(merged, env, "env", "os.environ", sources)

            self._merged = merged
            self._sources = sources

            self.editor = _build_dataclass(EditorConfig, merged.get("Editor", {}))
            self.signing = _build_dataclass(SigningConfig, merged.get("Signing", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def source_of(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# Global singleton
config_service = ConfigService()
