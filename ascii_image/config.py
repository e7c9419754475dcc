#!/usr/bin/env python3
# ascii_image/config.py
"""
Config loader/saver and defaults for ascii-image.

Goals:
- Single optional JSON file per user.
- Safe atomic writes.
- Deep-merge of user config over defaults.
- Basic validation with sane fallbacks.
- One immutable Settings value handed to the conversion core.

Usage:
    from ascii_image.config import Config, Settings
    cfg = Config.load(create_if_missing=False)   # ~/.config/ascii_image/config.json
    cfg.update({"render": {"invert": True}})
    settings = Settings.from_config(cfg)
"""

from __future__ import annotations

import copy
import json
import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ascii_image.rendering.palette import MAX_PALETTE_SIZE, Palette, resolve_palette
from ascii_image.rendering.renderer import RenderOptions
from ascii_image.version import __version__

log = logging.getLogger(__name__)

# ----------------------------
# Defaults
# ----------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "output": {
        "width": None,                    # None + None height -> width 78
        "height": None,
    },
    "render": {
        "palette": "@default",            # "@name" or literal characters
        "invert": False,
        "flip_x": False,
        "flip_y": False,
    },
    "network": {
        "user_agent": f"ascii-image/{__version__}",
        "connect_timeout_s": 5.0,
        "read_timeout_s": 15.0,
        "retries": 3,
    },
    "logging": {
        "level": "WARNING",
        "http_debug": False,
        "file": None,                     # path or None
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}

MAX_DIMENSION = 65535

# ----------------------------
# Helpers
# ----------------------------

def _os_config_home() -> str:
    """Return per-OS config base directory."""
    if platform.system() == "Windows":
        base = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return os.path.join(base, "AsciiImage")
    if platform.system() == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Application Support"), "AsciiImage")
    return os.path.join(os.path.expanduser("~/.config"), "ascii_image")

def _default_config_path() -> str:
    """Resolve default config path, honoring ASCII_IMAGE_CONFIG env override."""
    env = os.environ.get("ASCII_IMAGE_CONFIG")
    if env:
        return os.path.expanduser(env)
    return os.path.join(_os_config_home(), "config.json")

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Return deep-merged copy of dicts: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_cfg_", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise

def _coerce_num(v: Any, default: float, minmax: Optional[Tuple[float, float]] = None) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return float(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_int(v: Any, default: int, minmax: Optional[Tuple[int, int]] = None) -> int:
    try:
        x = int(v)
    except (TypeError, ValueError):
        return int(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_dim(v: Any) -> Optional[int]:
    """Optional output dimension. Unset or unparsable means "derive it"."""
    if v is None or isinstance(v, bool):
        return None
    try:
        x = int(v)
    except (TypeError, ValueError):
        return None
    return min(max(x, 1), MAX_DIMENSION)

def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("1", "true", "yes", "on"): return True
        if s in ("0", "false", "no", "off"): return False
    return default

# ----------------------------
# Validation
# ----------------------------

def _validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return validated copy with fallbacks applied."""
    c = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), cfg or {})

    # output
    o = c["output"]
    o["width"] = _coerce_dim(o.get("width"))
    o["height"] = _coerce_dim(o.get("height"))

    # render
    r = c["render"]
    pal = r.get("palette")
    if not isinstance(pal, str) or not (2 <= len(pal) <= MAX_PALETTE_SIZE):
        r["palette"] = DEFAULT_CONFIG["render"]["palette"]
    for key in ("invert", "flip_x", "flip_y"):
        r[key] = _coerce_bool(r.get(key), DEFAULT_CONFIG["render"][key])

    # network
    n = c["network"]
    n["user_agent"] = str(n.get("user_agent") or DEFAULT_CONFIG["network"]["user_agent"])
    n["connect_timeout_s"] = _coerce_num(n.get("connect_timeout_s"), 5.0, (0.2, 60.0))
    n["read_timeout_s"]    = _coerce_num(n.get("read_timeout_s"), 15.0, (0.5, 120.0))
    n["retries"]           = _coerce_int(n.get("retries"), 3, (0, 10))

    # logging
    lg = c["logging"]
    level = str(lg.get("level") or "").upper()
    if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
        level = DEFAULT_CONFIG["logging"]["level"]
    lg["level"] = level
    lg["http_debug"] = _coerce_bool(lg.get("http_debug"), DEFAULT_CONFIG["logging"]["http_debug"])
    lf = lg.get("file")
    lg["file"] = str(lf) if lf else None
    lg["rotate_bytes"] = _coerce_int(lg.get("rotate_bytes"), DEFAULT_CONFIG["logging"]["rotate_bytes"], (256 * 1024, 50 * 1024 * 1024))
    lg["rotate_keep"]  = _coerce_int(lg.get("rotate_keep"), DEFAULT_CONFIG["logging"]["rotate_keep"], (0, 50))

    return c

# ----------------------------
# Public API
# ----------------------------

@dataclass
class Config:
    """Thin wrapper around a nested dict with load/save/merge."""
    data: Dict[str, Any] = field(default_factory=lambda: _validate(DEFAULT_CONFIG))
    path: str = field(default_factory=_default_config_path)

    # --- Mapping-style access
    def __getitem__(self, k: str) -> Any:
        return self.data[k]

    def __setitem__(self, k: str, v: Any) -> None:
        self.data[k] = v

    def get(self, k: str, default: Any = None) -> Any:
        return self.data.get(k, default)

    # --- Ops
    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = True) -> "Config":
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if not os.path.exists(cfg_path):
            cfg = _validate(DEFAULT_CONFIG)
            if create_if_missing:
                _atomic_write_json(cfg_path, cfg)
            return cls(cfg, cfg_path)

        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                user_cfg = json.load(f)
            if not isinstance(user_cfg, dict):
                raise ValueError("top-level value is not an object")
        except OSError as exc:
            # Unreadable: a directory or no permission
            log.warning("Cannot read config %s (%s); using defaults", cfg_path, exc)
            user_cfg = {}
        except ValueError as exc:
            # Corrupt file. Keep a backup and fall back to defaults.
            backup = cfg_path + ".corrupt.bak"
            log.warning("Ignoring corrupt config %s (%s); backup at %s", cfg_path, exc, backup)
            shutil.copyfile(cfg_path, backup)
            user_cfg = {}

        return cls(_validate(user_cfg), cfg_path)

    def save(self) -> None:
        """Persist to JSON atomically."""
        diff = _diff(DEFAULT_CONFIG, self.data)
        full = _validate(_deep_merge(DEFAULT_CONFIG, diff))
        _atomic_write_json(self.path, full)
        self.data = full  # sync in-memory with normalized values

    def update(self, partial: Dict[str, Any]) -> None:
        """Deep-merge a partial config then validate."""
        merged = _deep_merge(self.data, partial)
        self.data = _validate(merged)


def _diff(base: Dict[str, Any], cur: Dict[str, Any]) -> Dict[str, Any]:
    """Return nested dictionary of keys where cur differs from base."""
    out: Dict[str, Any] = {}
    for k in cur.keys() | base.keys():
        if k not in base:
            out[k] = cur[k]
            continue
        if k not in cur:
            continue
        vb = base[k]
        vc = cur[k]
        if isinstance(vb, dict) and isinstance(vc, dict):
            d = _diff(vb, vc)
            if d:
                out[k] = d
        elif vb != vc:
            out[k] = vc
    return out


@dataclass(frozen=True)
class Settings:
    """Immutable per-run configuration passed into the conversion core."""
    palette: Palette = field(default_factory=lambda: resolve_palette("@default"))
    width: Optional[int] = None
    height: Optional[int] = None
    options: RenderOptions = field(default_factory=RenderOptions)
    user_agent: str = DEFAULT_CONFIG["network"]["user_agent"]
    timeout: Tuple[float, float] = (5.0, 15.0)
    retries: int = 3

    @classmethod
    def from_config(cls, cfg: Config) -> "Settings":
        o, r, n = cfg["output"], cfg["render"], cfg["network"]
        return cls(
            palette=resolve_palette(r["palette"]),
            width=o["width"],
            height=o["height"],
            options=RenderOptions(
                flip_x=r["flip_x"],
                flip_y=r["flip_y"],
                invert=r["invert"],
            ),
            user_agent=n["user_agent"],
            timeout=(n["connect_timeout_s"], n["read_timeout_s"]),
            retries=n["retries"],
        )


__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "Settings",
    "_default_config_path",
]
