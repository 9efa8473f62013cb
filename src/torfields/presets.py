"""Named configuration presets for well-known tokamak geometries.

Each preset is a dictionary that can be unpacked into FieldsConfig(**preset).
The registry covers:
- Tutorial / quick-start (small analytic mesh, guiding-center field)
- DIII-D-like circular equilibrium with a radial SC-E solve
- ITER-like circular equilibrium, full-orbit field
- Mesh-interpolated field on a coarse 3-D analytic mesh

Usage:
    from torfields.presets import get_preset, list_presets
    config = FieldsConfig(**get_preset("tutorial"))
"""

from __future__ import annotations

import copy
from typing import Any

_PRESETS: dict[str, dict[str, Any]] = {
    "tutorial": {
        "_meta": {
            "description": "Small analytic guiding-center field for quick tests and tutorials",
            "device": "Generic",
        },
        "field_model": "gc_analytical",
        "equilibrium": {
            "B0": 1.0,
            "major_radius": 1.0,
            "minor_radius": 0.3,
            "qa": 3.0,
            "qo": 1.0,
        },
        "mesh": {"nR": 32, "nZ": 32},
    },
    "diii-d": {
        "_meta": {
            "description": "DIII-D-like circular equilibrium with radial SC-E field",
            "device": "DIII-D",
        },
        "field_model": "gc_analytical",
        "equilibrium": {
            "B0": 2.1,
            "major_radius": 1.7,
            "minor_radius": 0.6,
            "qa": 3.5,
            "qo": 1.0,
            "E0": 0.1,
        },
        "sc": {
            "enabled": True,
            "geometry": "radial",
            "dim_1D": 100,
            "dt_E_SC": 1e-6,
            "Ip_exp": 1.5e6,
        },
        "time": {"dt": 1e-9, "t_steps": 100000, "t_skip": 1000},
    },
    "iter": {
        "_meta": {
            "description": "ITER-like circular equilibrium, full-orbit analytic field",
            "device": "ITER",
        },
        "field_model": "fo_analytical",
        "equilibrium": {
            "B0": 5.3,
            "major_radius": 6.2,
            "minor_radius": 2.0,
            "qa": 3.0,
            "qo": 1.0,
            "E0": 0.0,
        },
    },
    "mesh_demo": {
        "_meta": {
            "description": "Guiding-center field interpolated on a coarse 3-D analytic mesh",
            "device": "Generic",
        },
        "field_model": "mesh",
        "equilibrium": {
            "B0": 1.0,
            "major_radius": 1.0,
            "minor_radius": 0.3,
            "qa": 3.0,
            "qo": 1.0,
            "E0": 0.5,
        },
        "mesh": {"nR": 48, "nPHI": 8, "nZ": 48, "Bflux": True},
    },
}


def list_presets() -> list[dict[str, str]]:
    """One summary row (name, description, device, field_model) per preset."""
    return [
        {
            "name": name,
            "description": preset["_meta"]["description"],
            "device": preset["_meta"]["device"],
            "field_model": preset.get("field_model", "gc_analytical"),
        }
        for name, preset in _PRESETS.items()
    ]


def get_preset(name: str) -> dict[str, Any]:
    """Deep copy of preset ``name`` with its ``_meta`` block removed.

    Raises:
        KeyError: ``name`` is not a registered preset.
    """
    try:
        preset = copy.deepcopy(_PRESETS[name])
    except KeyError:
        raise KeyError(
            f"No preset named '{name}'. Available: {', '.join(get_preset_names())}"
        ) from None
    del preset["_meta"]
    return preset


def get_preset_names() -> list[str]:
    return sorted(_PRESETS)
