"""
Configuration keys and config.yaml loading.

Session settings are plain string key/value pairs. They can come from
config.yaml (section ``mosaic``), from environment variables or be set on
the session builder directly; later sources win.
"""

import os
from pathlib import Path
from typing import Optional

import yaml


# ---------------------------------------------------------------------------
# Konstanten
# ---------------------------------------------------------------------------

MOSAIC_INDEX_SYSTEM = "mosaic.index.system"
MOSAIC_GEOMETRY_API = "mosaic.geometry.api"
MOSAIC_RASTER_API = "mosaic.raster.api"

DEFAULT_SETTINGS: dict[str, str] = {
    MOSAIC_INDEX_SYSTEM: "H3",
    MOSAIC_GEOMETRY_API: "ESRI",
    MOSAIC_RASTER_API: "GDAL",
}

# config.yaml keys in the ``mosaic`` section -> session keys
CONFIG_KEYS: dict[str, str] = {
    "index_system": MOSAIC_INDEX_SYSTEM,
    "geometry_api": MOSAIC_GEOMETRY_API,
    "raster_api": MOSAIC_RASTER_API,
}

# Environment overrides
ENV_KEYS: dict[str, str] = {
    "MOSAIC_INDEX_SYSTEM": MOSAIC_INDEX_SYSTEM,
    "MOSAIC_GEOMETRY_API": MOSAIC_GEOMETRY_API,
    "MOSAIC_RASTER_API": MOSAIC_RASTER_API,
}

# config.yaml liegt im Projektverzeichnis
CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def load_config(path: Path) -> dict | None:
    """Liest config.yaml. Gibt None zurueck wenn die Datei nicht existiert."""
    if not path.exists():
        return None
    with open(path, "r") as f:
        return yaml.safe_load(f)


def session_settings(config: Optional[dict] = None, environ: Optional[dict] = None) -> dict[str, str]:
    """
    Merge defaults, the ``mosaic`` section of a config dict and environment
    overrides into session settings.

    Args:
        config: Parsed config.yaml (or None)
        environ: Environment mapping, defaults to os.environ

    Returns:
        Dict of session key -> string value
    """
    settings = dict(DEFAULT_SETTINGS)

    section = (config or {}).get("mosaic") or {}
    for name, key in CONFIG_KEYS.items():
        if section.get(name) is not None:
            settings[key] = str(section[name])

    environ = os.environ if environ is None else environ
    for name, key in ENV_KEYS.items():
        value = (environ.get(name) or "").strip()
        if value:
            settings[key] = value

    return settings
