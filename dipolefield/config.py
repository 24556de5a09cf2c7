# =============================================================================
# CONFIG: JSON Scenario Loading
# =============================================================================
"""
Typed configuration records and the JSON loader.

Every key is optional; missing keys keep their defaults. A missing or
unreadable file never aborts the program: ``load_config`` returns None and
``load_config_or_fallback`` substitutes the high-resolution fallback scenario.

Example document:

    {
        "scenario": "bar_magnets",
        "grid": {"nx": 256, "ny": 256, "dx": 0.002, "dy": 0.002},
        "magnets": [{"x": 96, "y": 128, "moment_y": 1.0, "name": "left"}],
        "visualization": {"color_range": 1.2}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .constants import (
    NX_DEFAULT, NY_DEFAULT, DX_DEFAULT, DY_DEFAULT, MAX_STEPS_DEFAULT,
    NX_FALLBACK, NY_FALLBACK, DX_FALLBACK, DY_FALLBACK,
    COLOR_RANGE_DEFAULT, COLOR_RANGE_FALLBACK,
    DEFAULT_PROFILE,
)
from .sources import DipoleSource, MaterialBlock, SourceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / 'assets' / 'config.json'


@dataclass
class GridConfig:
    nx: int = NX_DEFAULT
    ny: int = NY_DEFAULT
    dx: float = DX_DEFAULT
    dy: float = DY_DEFAULT


@dataclass
class VisualConfig:
    field: str = 'Ez'
    color_range: float = COLOR_RANGE_DEFAULT
    profile: str = DEFAULT_PROFILE
    color_scheme: str = 'femm'


@dataclass
class SimulationConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    max_steps: int = MAX_STEPS_DEFAULT
    materials: List[MaterialBlock] = field(default_factory=list)
    sources: List[SourceConfig] = field(default_factory=list)
    dipoles: List[DipoleSource] = field(default_factory=list)
    visualization: VisualConfig = field(default_factory=VisualConfig)
    scenario: str = 'default'
    n_jobs: int = 1


# =============================================================================
# Parsing
# =============================================================================

def _pick(d, *keys, default=None):
    """First present key among ``keys`` (snake_case name first, then aliases)."""
    for key in keys:
        if key in d:
            return d[key]
    return default


def parse_grid(d: dict) -> GridConfig:
    g = GridConfig()
    return GridConfig(
        nx=int(d.get('nx', g.nx)),
        ny=int(d.get('ny', g.ny)),
        dx=float(d.get('dx', g.dx)),
        dy=float(d.get('dy', g.dy)),
    )


def parse_material(d: dict) -> MaterialBlock:
    """All five keys are required for a material block."""
    return MaterialBlock(
        x0=int(d['x0']), y0=int(d['y0']),
        w=int(d['w']), h=int(d['h']),
        eps_r=float(d['eps_r']),
    )


def parse_source(d: dict) -> SourceConfig:
    s = SourceConfig()
    return SourceConfig(
        type=str(d.get('type', s.type)),
        x=int(d.get('x', s.x)),
        y=int(d.get('y', s.y)),
        amplitude=float(d.get('amplitude', s.amplitude)),
        t0=float(d.get('t0', s.t0)),
        spread=float(d.get('spread', s.spread)),
        freq_hz=float(d.get('freq_hz', s.freq_hz)),
    )


def parse_dipole(d: dict) -> DipoleSource:
    return DipoleSource(
        position=(int(d.get('x', 0)), int(d.get('y', 0))),
        moment=(float(_pick(d, 'moment_x', 'momentX', default=0.0)),
                float(_pick(d, 'moment_y', 'momentY', default=1.0))),
        strength=float(d.get('strength', 1.0)),
        label=str(_pick(d, 'name', 'label', default='magnet')),
    )


def parse_visualization(d: dict) -> VisualConfig:
    v = VisualConfig()
    return VisualConfig(
        field=str(d.get('field', v.field)),
        color_range=float(_pick(d, 'color_range', 'colorRange', default=v.color_range)),
        profile=str(d.get('profile', v.profile)),
        color_scheme=str(d.get('color_scheme', v.color_scheme)),
    )


def config_from_dict(doc: dict) -> SimulationConfig:
    """Build a SimulationConfig from an already-parsed JSON document."""
    cfg = SimulationConfig()
    if 'grid' in doc:
        cfg.grid = parse_grid(doc['grid'])
    if 'timestepping' in doc and 'max_steps' in doc['timestepping']:
        cfg.max_steps = int(doc['timestepping']['max_steps'])
    cfg.materials = [parse_material(m) for m in doc.get('materials', [])]
    cfg.sources = [parse_source(s) for s in doc.get('sources', [])]
    cfg.dipoles = [parse_dipole(m) for m in _pick(doc, 'magnets', 'dipoles', default=[])]
    if 'visualization' in doc:
        cfg.visualization = parse_visualization(doc['visualization'])
    cfg.scenario = str(doc.get('scenario', cfg.scenario))
    cfg.n_jobs = int(doc.get('n_jobs', cfg.n_jobs))
    return cfg


# =============================================================================
# Loading
# =============================================================================

def load_config(path) -> Optional[SimulationConfig]:
    """
    Read a JSON configuration file.

    Returns:
        The parsed config, or None if the file cannot be opened or parsed
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = json.load(f)
    except OSError as e:
        logger.error("Could not open config file %s: %s", path, e)
        return None
    except json.JSONDecodeError as e:
        logger.error("Failed to parse config %s: %s", path, e)
        return None

    try:
        cfg = config_from_dict(doc)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.error("Invalid config %s: %s", path, e)
        return None

    logger.info("Loaded configuration '%s': grid %dx%d, %d dipoles, %d sources",
                cfg.scenario, cfg.grid.nx, cfg.grid.ny, len(cfg.dipoles), len(cfg.sources))
    return cfg


def fallback_config() -> SimulationConfig:
    """High-resolution scenario used when no configuration can be read."""
    return SimulationConfig(
        grid=GridConfig(nx=NX_FALLBACK, ny=NY_FALLBACK, dx=DX_FALLBACK, dy=DY_FALLBACK),
        visualization=VisualConfig(field='B', color_range=COLOR_RANGE_FALLBACK,
                                   profile='high_resolution'),
        scenario='default_fallback',
    )


def load_config_or_fallback(path=DEFAULT_CONFIG_PATH) -> SimulationConfig:
    cfg = load_config(path)
    if cfg is None:
        logger.warning("Config file not found or invalid, using high-resolution defaults")
        cfg = fallback_config()
    return cfg


__all__ = [
    'DEFAULT_CONFIG_PATH',
    'GridConfig',
    'VisualConfig',
    'SimulationConfig',
    'config_from_dict',
    'load_config',
    'fallback_config',
    'load_config_or_fallback',
]
