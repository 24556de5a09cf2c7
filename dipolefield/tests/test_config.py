# =============================================================================
# Test Config: JSON Loading and Fallback
# =============================================================================

import json

import numpy as np
import pytest

from dipolefield.config import (
    DEFAULT_CONFIG_PATH,
    SimulationConfig,
    config_from_dict,
    fallback_config,
    load_config,
    load_config_or_fallback,
)
from dipolefield.simulation import MagneticFieldSimulation
from dipolefield.sources import DipoleSource, MaterialBlock


def _write(tmp_path, doc, name='config.json'):
    path = tmp_path / name
    path.write_text(json.dumps(doc), encoding='utf-8')
    return path


def test_full_document(tmp_path):
    path = _write(tmp_path, {
        'scenario': 'pair',
        'grid': {'nx': 64, 'ny': 48, 'dx': 0.004},
        'timestepping': {'max_steps': 200},
        'materials': [{'x0': 1, 'y0': 2, 'w': 3, 'h': 4, 'eps_r': 2.5}],
        'sources': [{'type': 'cw', 'x': 5, 'y': 6, 'freq_hz': 1e9}],
        'magnets': [
            {'x': 10, 'y': 20, 'moment_x': 1.0, 'moment_y': 0.0, 'strength': 2.0, 'name': 'east'},
            {'x': 30, 'y': 20, 'momentX': -1.0, 'momentY': 0.5},
        ],
        'visualization': {'field': 'B', 'colorRange': 1.4, 'profile': 'high_resolution'},
        'n_jobs': 2,
    })
    cfg = load_config(path)

    assert cfg.scenario == 'pair'
    assert (cfg.grid.nx, cfg.grid.ny) == (64, 48)
    assert cfg.grid.dx == 0.004
    assert cfg.grid.dy == 0.002
    assert cfg.max_steps == 200
    assert cfg.materials == [MaterialBlock(1, 2, 3, 4, 2.5)]
    assert cfg.sources[0].type == 'cw'
    assert cfg.sources[0].amplitude == 1.0
    assert cfg.dipoles == [
        DipoleSource((10, 20), (1.0, 0.0), 2.0, 'east'),
        DipoleSource((30, 20), (-1.0, 0.5), 1.0, 'magnet'),
    ]
    assert cfg.visualization.color_range == 1.4
    assert cfg.visualization.profile == 'high_resolution'
    assert cfg.n_jobs == 2


def test_empty_document_uses_defaults():
    cfg = config_from_dict({})
    assert cfg == SimulationConfig()
    assert (cfg.grid.nx, cfg.grid.ny) == (256, 256)
    assert cfg.visualization.field == 'Ez'
    assert cfg.visualization.color_range == 1.0
    assert cfg.dipoles == []


def test_missing_file_returns_none(tmp_path):
    assert load_config(tmp_path / 'nope.json') is None


def test_malformed_json_returns_none(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"grid": {', encoding='utf-8')
    assert load_config(path) is None


def test_incomplete_material_returns_none(tmp_path):
    path = _write(tmp_path, {'materials': [{'x0': 0, 'y0': 0, 'w': 4}]})
    assert load_config(path) is None


def test_fallback(tmp_path):
    cfg = load_config_or_fallback(tmp_path / 'missing.json')

    assert cfg == fallback_config()
    assert cfg.scenario == 'default_fallback'
    assert (cfg.grid.nx, cfg.grid.ny) == (512, 512)
    assert cfg.visualization.color_range == 1.8
    assert cfg.visualization.profile == 'high_resolution'


def test_bundled_config_loads():
    cfg = load_config(DEFAULT_CONFIG_PATH)
    assert cfg is not None
    assert len(cfg.dipoles) == 4


def test_simulation_from_config(tmp_path):
    path = _write(tmp_path, {
        'grid': {'nx': 20, 'ny': 10},
        'materials': [{'x0': 0, 'y0': 0, 'w': 2, 'h': 2, 'eps_r': 3.0}],
        'sources': [{'type': 'static', 'x': 1, 'y': 1}],
        'magnets': [{'x': 10, 'y': 5}],
        'visualization': {'profile': 'high_resolution'},
    })
    sim = MagneticFieldSimulation.from_config(load_config(path))

    assert sim.grid_shape == (20, 10)
    assert sim.profile.clamp == 5.0
    assert len(sim.sources) == 1
    assert sim.dipoles[0].position == (10, 5)
    assert np.count_nonzero(sim.eps_r == 3.0) == 4
    assert sim.synthesize()[5, 10] == pytest.approx(3.5)
