from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any


class PropertiesError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise PropertiesError(msg)


def properties_key(name: str, cam_id: int = -1) -> str:
    """
    Key of a camera parameter in a property store.

    A negative id (-1 by convention) addresses the unnamespaced key, e.g. ``k1``.
    Otherwise the key is prefixed by the camera, e.g. ``camera.0.k1``.
    """
    if cam_id < 0:
        return name
    return f"camera.{int(cam_id)}.{name}"


def get_float(prop: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = prop.get(key)
    if value is None:
        return float(default)
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise PropertiesError(f"{key}: expected a number, got {value!r}") from exc
    _require(math.isfinite(v), f"{key}: value must be finite, got {value!r}")
    return v


def format_value(value: Any) -> str:
    if isinstance(value, float):
        # numpy scalars subclass float but repr as np.float64(...)
        return repr(float(value))
    return str(value)


def parse_properties(text: str) -> Properties:
    prop = Properties()
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        _require("=" in line, f"line {lineno}: expected key=value, got {raw!r}")
        key, value = line.split("=", 1)
        key = key.strip()
        _require(key != "", f"line {lineno}: empty key")
        prop[key] = value.strip()
    return prop


class Properties(dict):
    """
    Plain key-value camera parameter store.

    Files use one ``key=value`` per line. Blank lines and lines starting with
    ``#`` are ignored. Values are kept as read (strings); consumers convert them.
    """

    @classmethod
    def load(cls, path: Path) -> Properties:
        return cls(parse_properties(Path(path).read_text(encoding="utf-8")))

    def save(self, path: Path) -> Path:
        path = Path(path)
        lines = [f"{key}={format_value(value)}" for key, value in self.items()]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    def get_float(self, key: str, default: float = 0.0) -> float:
        return get_float(self, key, default)
