# =============================================================================
# Test Visualization: Figure Export, Viewer Keys and CLI
# =============================================================================

import json
from types import SimpleNamespace

import matplotlib.pyplot as plt
import numpy as np
import pytest

from dipolefield.colormap import ScalarColorMapper
from dipolefield.controls import DisplayRange, RangeController
from dipolefield.scripts.run_viewer import main
from dipolefield.simulation import MagneticFieldSimulation
from dipolefield.sources import DipoleSource
from dipolefield.visualization import CONFLICTING_KEYMAPS, FieldViewer, plot_field, visualize_simulation


@pytest.fixture(autouse=True)
def close_figures():
    with plt.rc_context():
        yield
    plt.close('all')


@pytest.fixture
def simulation():
    sim = MagneticFieldSimulation(24, 16)
    sim.add_dipole(DipoleSource((12, 8), (0.0, 1.0), 1.0, 'bar'))
    sim.synthesize()
    return sim


def test_visualize_simulation_saves(tmp_path, simulation):
    mapper = ScalarColorMapper(DisplayRange(1.0))
    out = tmp_path / 'field.png'
    visualize_simulation(simulation.get_grid(), mapper, dipoles=simulation.dipoles,
                         statistics=simulation.statistics, title='bar', save_path=str(out))
    assert out.exists()


def test_plot_field_saves(tmp_path, simulation):
    out = tmp_path / 'plain.png'
    plot_field(simulation.get_grid(), ScalarColorMapper(0.8), save_path=str(out))
    assert out.exists()


def test_viewer_keys_drive_range(simulation):
    display_range = DisplayRange(1.0)
    controller = RangeController(display_range)
    mapper = ScalarColorMapper(display_range)
    viewer = FieldViewer(simulation, mapper, controller, title='bar')

    viewer.on_key(SimpleNamespace(key='down'))
    assert controller.get_range() == pytest.approx(0.95)
    assert viewer.frame_count == 1
    assert 'Color Range: 0.95' in viewer.ax_field.get_title()

    expected = mapper.map_cells_to_pixels(simulation.get_grid(), 0.95)
    assert np.array_equal(np.asarray(viewer.field_image.get_array()), expected)

    viewer.on_key(SimpleNamespace(key='q'))
    assert viewer.frame_count == 1

    viewer.on_key(SimpleNamespace(key='r'))
    assert controller.get_range() == 1.0


def test_viewer_releases_toolbar_keys(simulation):
    with plt.rc_context():
        before = {name: list(plt.rcParams[name]) for name in CONFLICTING_KEYMAPS}
        controller = RangeController(DisplayRange(1.0))
        viewer = FieldViewer(simulation, ScalarColorMapper(controller.display_range), controller)

        for name in CONFLICTING_KEYMAPS:
            assert not {'left', 'right', 'r'} & set(plt.rcParams[name])

        viewer.close()
        assert {name: list(plt.rcParams[name]) for name in CONFLICTING_KEYMAPS} == before


def test_escape_restores_toolbar_keys(simulation):
    with plt.rc_context():
        before = list(plt.rcParams['keymap.home'])
        controller = RangeController(DisplayRange(1.0))
        viewer = FieldViewer(simulation, ScalarColorMapper(controller.display_range), controller)

        viewer.on_key(SimpleNamespace(key='escape'))
        assert list(plt.rcParams['keymap.home']) == before
        assert not plt.fignum_exists(viewer.fig.number)


def test_viewer_marks_fallback_dipoles():
    sim = MagneticFieldSimulation(30, 30)
    sim.synthesize()
    controller = RangeController(DisplayRange(1.0))

    with plt.rc_context():
        viewer = FieldViewer(sim, ScalarColorMapper(controller.display_range), controller)
        labels = {text.get_text() for text in viewer.ax_field.texts}
        viewer.close()

    assert len(viewer.ax_field.lines) == 3
    assert labels == {'center_north', 'left_south', 'right_south'}


def test_cli_save(tmp_path):
    config_path = tmp_path / 'scenario.json'
    config_path.write_text(json.dumps({
        'scenario': 'cli',
        'grid': {'nx': 20, 'ny': 20},
        'magnets': [{'x': 10, 'y': 10}],
        'visualization': {'color_range': 1.5},
    }), encoding='utf-8')
    out = tmp_path / 'cli.png'

    assert main(['--config', str(config_path), '--save', str(out), '--log-level', 'WARNING']) == 0
    assert out.exists()
