# =============================================================================
# VISUALIZATION: Field Images, Legend and Interactive Viewer
# =============================================================================
"""
Presentation layer for the synthesized field.

Main functions:
    visualize_simulation: Field image + gradient legend + dipole markers
    plot_field: Just the color-mapped field
    draw_legend: Gradient bar with S/N labels on an existing axis
    FieldViewer: Interactive window; arrow keys and R drive the RangeController

All pixels come from ScalarColorMapper, so the legend is always a faithful key
to the image.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from .colormap import ScalarColorMapper
from .controls import DEFAULT_KEY_BINDINGS, RangeController

logger = logging.getLogger(__name__)


# =============================================================================
# Styling
# =============================================================================

BACKGROUND_COLOR = '#101020'         # Dark blue-gray
TEXT_COLOR = 'white'
SUBTLE_TEXT_COLOR = 'lightgray'
DIPOLE_MARKER_COLOR = 'white'
LEGEND_WIDTH = 400

CONTROLS_HELP = "UP/DOWN: coarse, LEFT/RIGHT: fine, R: reset, ESC: quit"

# Matplotlib toolbar shortcuts that collide with the range keys
CONFLICTING_KEYMAPS = ('keymap.back', 'keymap.forward', 'keymap.home')


def _field_title(color_range, title=None):
    base = title or 'Magnetic Dipole Field'
    return f"{base}\nColor Range: {color_range:.2f}"


def draw_legend(ax, mapper, color_range=None, width=LEGEND_WIDTH):
    """
    Draw the gradient bar for ``color_range`` on ``ax``.

    Returns:
        The AxesImage holding the bar (update it with set_data)
    """
    rng = mapper.display_range.get() if color_range is None else color_range
    bar = mapper.render_legend(rng, width)[np.newaxis, :, :]
    image = ax.imshow(bar, aspect='auto', extent=(-1, 1, 0, 1), interpolation='nearest')
    ax.set_yticks([])
    ax.set_xticks([-1, -0.5, 0, 0.5, 1])
    ax.set_xticklabels([f"S (-{rng:.1f})", 'Weak', '0', 'Weak', f"N (+{rng:.1f})"],
                       color=SUBTLE_TEXT_COLOR, fontsize=9)
    ax.set_title('Field Strength Legend', color=TEXT_COLOR, fontsize=10)
    for spine in ax.spines.values():
        spine.set_edgecolor(TEXT_COLOR)
    return image


def _mark_dipoles(ax, dipoles):
    for dipole in dipoles:
        ax.plot(dipole.x, dipole.y, marker='+', color=DIPOLE_MARKER_COLOR, markersize=8)
        ax.annotate(dipole.label, (dipole.x, dipole.y), xytext=(4, 4), textcoords='offset points',
                    color=DIPOLE_MARKER_COLOR, fontsize=7)


def visualize_simulation(grid, mapper, color_range=None, dipoles=None, statistics=None,
                         title=None, save_path=None):
    """
    Field image with the gradient legend underneath.

    Args:
        grid: ny × nx scalar grid
        mapper: ScalarColorMapper used for both the image and the legend
        color_range: Display range (default: the mapper's current range)
        dipoles: Optional dipoles to mark on the image
        statistics: Optional FieldStatistics shown in the corner
        title: Optional title
        save_path: If provided, save figure to this path instead of displaying

    Returns:
        fig: The matplotlib figure object
    """
    rng = mapper.display_range.get() if color_range is None else color_range
    pixels = mapper.map_cells_to_pixels(grid, rng)

    fig, (ax_field, ax_legend) = plt.subplots(
        2, 1, figsize=(8, 9), gridspec_kw={'height_ratios': [12, 1]})
    fig.patch.set_facecolor(BACKGROUND_COLOR)

    ax_field.imshow(pixels, interpolation='bilinear')
    ax_field.set_title(_field_title(rng, title), color=TEXT_COLOR)
    ax_field.set_xticks([])
    ax_field.set_yticks([])
    if dipoles:
        _mark_dipoles(ax_field, dipoles)
    if statistics is not None:
        ax_field.text(0.01, 0.99,
                      f"range [{statistics.minimum:.2f}, {statistics.maximum:.2f}]\n"
                      f"active {statistics.active_cells}/{statistics.total_cells}",
                      transform=ax_field.transAxes, va='top', ha='left',
                      color=SUBTLE_TEXT_COLOR, fontsize=8)

    draw_legend(ax_legend, mapper, rng)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight', facecolor=fig.get_facecolor())
        plt.close(fig)
    else:
        plt.show()

    return fig


def plot_field(grid, mapper, color_range=None, title="Dipole Field", save_path=None):
    """
    Plot just the color-mapped field.

    Returns:
        fig: matplotlib Figure object
    """
    rng = mapper.display_range.get() if color_range is None else color_range
    fig, ax = plt.subplots(figsize=(8, 8))

    ax.imshow(mapper.map_cells_to_pixels(grid, rng), interpolation='bilinear')
    ax.set_title(_field_title(rng, title))
    ax.set_xticks([])
    ax.set_yticks([])

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
    else:
        plt.show()
    return fig


# =============================================================================
# Interactive Viewer
# =============================================================================

class FieldViewer:
    """
    Matplotlib window showing the synthesized field.

    Key presses are translated into RangeController commands; after each
    accepted key the image and legend are re-mapped with the new range.
    """

    def __init__(self, simulation, mapper: ScalarColorMapper, controller: RangeController,
                 title=None):
        self.simulation = simulation
        self.mapper = mapper
        self.controller = controller
        self.title = title
        self.frame_count = 0
        self.controller_keys = tuple(DEFAULT_KEY_BINDINGS)
        self._release_default_keys()

        self.fig, (self.ax_field, self.ax_legend) = plt.subplots(
            2, 1, figsize=(10, 10), gridspec_kw={'height_ratios': [12, 1]})
        self.fig.patch.set_facecolor(BACKGROUND_COLOR)
        self.fig.text(0.01, 0.005, CONTROLS_HELP, color=SUBTLE_TEXT_COLOR, fontsize=9)

        grid = self.simulation.get_grid()
        rng = self.controller.get_range()
        self.field_image = self.ax_field.imshow(
            self.mapper.map_cells_to_pixels(grid, rng), interpolation='bilinear')
        self.ax_field.set_xticks([])
        self.ax_field.set_yticks([])
        _mark_dipoles(self.ax_field, self.simulation.synthesized_dipoles)
        self.legend_image = draw_legend(self.ax_legend, self.mapper, rng)
        self._update_title(rng)

        self.fig.canvas.mpl_connect('key_press_event', self.on_key)
        self.fig.canvas.mpl_connect('close_event', lambda event: self._restore_default_keys())

    def _release_default_keys(self):
        """Drop the range keys from the toolbar keymaps, remembering the originals."""
        self._saved_keymaps = {name: list(plt.rcParams[name]) for name in CONFLICTING_KEYMAPS}
        bound = set(self.controller_keys)
        for name in CONFLICTING_KEYMAPS:
            plt.rcParams[name] = [k for k in plt.rcParams[name] if k not in bound]

    def _restore_default_keys(self):
        for name, keys in self._saved_keymaps.items():
            plt.rcParams[name] = keys
        self._saved_keymaps = {}

    def _update_title(self, rng):
        self.ax_field.set_title(_field_title(rng, self.title), color=TEXT_COLOR)

    def render(self):
        """Re-map the grid and legend with the current range and redraw."""
        self.frame_count += 1
        rng = self.controller.get_range()
        grid = self.simulation.get_grid()
        if self.frame_count <= 3:
            logger.debug("Frame %d: field range [%.4f, %.4f]",
                         self.frame_count, float(grid.min()), float(grid.max()))

        self.field_image.set_data(self.mapper.map_cells_to_pixels(grid, rng))
        self.ax_legend.clear()
        self.legend_image = draw_legend(self.ax_legend, self.mapper, rng)
        self._update_title(rng)
        self.fig.canvas.draw_idle()

    def on_key(self, event):
        if event.key == 'escape':
            self.close()
            return
        if self.controller.handle_key(event.key):
            self.render()

    def show(self):
        plt.show()

    def close(self):
        """Close the window and give the toolbar its keys back."""
        self._restore_default_keys()
        plt.close(self.fig)


# =============================================================================
# Module-level exports
# =============================================================================
__all__ = [
    'visualize_simulation',
    'plot_field',
    'draw_legend',
    'FieldViewer',
    'BACKGROUND_COLOR',
    'CONTROLS_HELP',
]
