# =============================================================================
# Dipole Field Viewer - Static Field Synthesis and Color Mapping
# =============================================================================
"""
This package synthesizes the static field of a set of point dipoles on a 2D
grid and maps it to colors for display.

Modules:
    constants: Synthesis profiles, display-range steps, grid defaults
    sources: DipoleSource, WaveSource, MaterialBlock records
    simulation: Field synthesis and the simulation object that owns the grid
    colormap: Banded scalar-to-RGBA transfer function and legend
    controls: Display range state and the commands that adjust it
    config: JSON scenario loading with fallback
    visualization: Matplotlib figures and the interactive viewer

Quick Start:
    from dipolefield import (
        MagneticFieldSimulation, DipoleSource,
        ScalarColorMapper, RangeController, DisplayRange,
    )

    sim = MagneticFieldSimulation(128, 128)
    sim.add_dipole(DipoleSource((64, 64), moment=(0.0, 1.0), strength=1.0, label='bar'))
    grid = sim.synthesize()

    display_range = DisplayRange(1.0)
    controller = RangeController(display_range)
    mapper = ScalarColorMapper(display_range)

    controller.decrease_coarse()
    pixels = mapper.map_cells_to_pixels(grid)   # 128 × 128 × 4 uint8
"""

# Re-export everything from submodules for convenience
from .constants import *
from .sources import *
from .simulation import *
from .colormap import *
from .controls import *
from .config import *
from .visualization import *

__version__ = "0.1.0"
