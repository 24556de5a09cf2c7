# =============================================================================
# SIMULATION: Dipole Field Synthesis
# =============================================================================
"""
Functions and classes for synthesizing the static dipole field.

Each piece does ONE thing:
        fallback_dipoles: Built-in dipole arrangement used when none are configured
        pole_value: Near-field sentinel for one dipole
        synthesize_rows: Superpose all dipoles over a band of grid rows
        FieldSynthesizer: Full-grid synthesis (optionally parallel) + statistics
        MagneticFieldSimulation: Owns the grid and its one-shot synthesis state

Notes about the field:
        - Every cell (i, j) sums, over all dipoles, the magnitude of the point
          dipole field B = (3(m·r̂)r̂ - m) / r³, scaled by ``profile.scale``.
        - Within ``profile.near_threshold`` (squared grid units, inclusive) the
          1/r³ term is not evaluated; the dipole contributes a signed pole value
          instead, so r = 0 never reaches a division.
        - The sum is clamped to [-profile.clamp, +profile.clamp].
        - The grid is stored as ``grid[j, i]`` with shape (ny, nx).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs

from .constants import (
    FieldProfile,
    DEFAULT_PROFILE,
    DX_DEFAULT, DY_DEFAULT,
    FALLBACK_DIPOLES, FALLBACK_SPACING_DIV,
    get_profile,
    cfl_time_step,
)
from .sources import DipoleSource, MaterialBlock, SourceConfig, WaveSource

logger = logging.getLogger(__name__)


# =============================================================================
# Dipole Helpers
# =============================================================================

def fallback_dipoles(nx: int, ny: int) -> List[DipoleSource]:
    """
    Built-in dipole arrangement for an (nx, ny) grid.

    A strong north pole at the grid centre with two weaker south poles on the
    horizontal centre line, nx // 6 columns either side of it.
    """
    cx, cy = nx // 2, ny // 2
    spacing = nx // FALLBACK_SPACING_DIV
    return [DipoleSource((cx + offset * spacing, cy), moment, strength, label)
            for offset, moment, strength, label in FALLBACK_DIPOLES]



def pole_value(dipole: DipoleSource, profile: FieldProfile) -> float:
    """
    Signed near-field value for a dipole (before strength is applied).

    The dominant moment axis decides the sign. The horizontal component wins
    only when strictly larger, so |mx| == |my| resolves to the vertical one.
    A zero dominant component counts as negative.
    """
    if abs(dipole.moment_x) > abs(dipole.moment_y):
        component = dipole.moment_x
    else:
        component = dipole.moment_y
    return profile.pole_magnitude if component > 0 else -profile.pole_magnitude


def synthesize_rows(row_start: int, row_stop: int, nx: int,
                    dipoles: Sequence[DipoleSource], profile: FieldProfile) -> np.ndarray:
    """
    Superpose every dipole over rows [row_start, row_stop) of the grid.

    Args:
        row_start, row_stop: Row (j) range to compute
        nx: Number of columns
        dipoles: Sources to sum
        profile: Synthesis constants

    Returns:
        rows: (row_stop - row_start) × nx float32 array, already clamped
    """
    i = np.arange(nx, dtype=np.float64)[np.newaxis, :]
    j = np.arange(row_start, row_stop, dtype=np.float64)[:, np.newaxis]
    total = np.zeros((row_stop - row_start, nx), dtype=np.float64)

    for dipole in dipoles:
        mx, my = dipole.moment_x, dipole.moment_y
        dx = i - dipole.x
        dy = j - dipole.y
        r_sq = dx * dx + dy * dy
        is_near = r_sq <= profile.near_threshold

        # Near cells get a dummy distance of 1 so nothing divides by zero;
        # their far-field value is discarded below.
        r_sq_safe = np.where(is_near, 1.0, r_sq)
        r = np.sqrt(r_sq_safe)
        r_inv3 = 1.0 / (r_sq_safe * r)

        # Unit vector from dipole to cell
        rx = dx / r
        ry = dy / r

        m_dot_r = mx * rx + my * ry
        bx = (3.0 * m_dot_r * rx - mx) * r_inv3
        by = (3.0 * m_dot_r * ry - my) * r_inv3
        far = dipole.strength * np.sqrt(bx * bx + by * by) * profile.scale

        near = dipole.strength * pole_value(dipole, profile)
        total += np.where(is_near, near, far)

    np.clip(total, -profile.clamp, profile.clamp, out=total)
    return total.astype(np.float32)


# =============================================================================
# Statistics
# =============================================================================

@dataclass(frozen=True)
class FieldStatistics:
    """Reporting-only summary of a synthesized grid."""
    minimum: float
    maximum: float
    active_cells: int
    total_cells: int

    @classmethod
    def from_grid(cls, grid: np.ndarray, active_eps: float) -> 'FieldStatistics':
        return cls(
            minimum=float(grid.min()),
            maximum=float(grid.max()),
            active_cells=int(np.count_nonzero(np.abs(grid) > active_eps)),
            total_cells=int(grid.size),
        )


# =============================================================================
# Synthesizer
# =============================================================================

class FieldSynthesizer:
    """
    Builds the dense scalar grid from a list of dipoles.

    Rows are split into contiguous chunks and evaluated with joblib. Each chunk
    only reads the dipole list and returns its own rows, so the result does not
    depend on ``n_jobs``.
    """

    def __init__(self, profile: Union[str, FieldProfile] = DEFAULT_PROFILE, n_jobs: int = 1):
        """
        Args:
            profile: Profile name from FIELD_PROFILES or a FieldProfile instance
            n_jobs: joblib worker count (1 = serial, -1 = all cores)
        """
        self.profile = get_profile(profile) if isinstance(profile, str) else profile
        self.n_jobs = n_jobs
        self.last_statistics: Optional[FieldStatistics] = None
        self.last_dipoles: List[DipoleSource] = []

    def synthesize(self, grid_shape: Tuple[int, int],
                   dipoles: Sequence[DipoleSource]) -> np.ndarray:
        """
        Synthesize the field for ``grid_shape = (nx, ny)``.

        An empty dipole list is replaced by ``fallback_dipoles(nx, ny)``.

        Returns:
            grid: ny × nx float32 array with values in [-clamp, clamp]
        """
        nx, ny = grid_shape
        if nx <= 0 or ny <= 0:
            raise ValueError(f"Grid shape must be positive, got {nx}x{ny}")

        dipoles = list(dipoles)
        if not dipoles:
            logger.info("No dipoles configured - using default fallback pattern")
            dipoles = fallback_dipoles(nx, ny)

        logger.info("Computing dipole field on %dx%d grid from %d dipoles:", nx, ny, len(dipoles))
        for dipole in dipoles:
            logger.info("  - %s", dipole)

        n_chunks = max(1, min(ny, effective_n_jobs(self.n_jobs)))
        bounds = np.linspace(0, ny, n_chunks + 1).astype(int)

        chunks = Parallel(n_jobs=self.n_jobs, verbose=0)(
            delayed(synthesize_rows)(int(start), int(stop), nx, dipoles, self.profile)
            for start, stop in zip(bounds[:-1], bounds[1:])
            if stop > start
        )
        grid = np.concatenate(chunks, axis=0)

        self.last_dipoles = dipoles
        self.last_statistics = FieldStatistics.from_grid(grid, self.profile.active_eps)
        stats = self.last_statistics
        logger.info("Field range [%.4f, %.4f], %d/%d active cells",
                    stats.minimum, stats.maximum, stats.active_cells, stats.total_cells)
        return grid


# =============================================================================
# Simulation Object
# =============================================================================

class SimulationState(Enum):
    UNINITIALIZED = 'uninitialized'
    SYNTHESIZED = 'synthesized'


class MagneticFieldSimulation:
    """
    Owns the scalar grid and its one-shot synthesis.

    Two independent capabilities:
        synthesize_static(): superpose the dipoles into the grid (once per reset)
        advance_time_step(): inject wave-source values into a separate
            excitation buffer; the synthesized grid is never touched
    """

    def __init__(self, nx: int, ny: int, dx: float = DX_DEFAULT, dy: float = DY_DEFAULT,
                 profile: Union[str, FieldProfile] = DEFAULT_PROFILE, n_jobs: int = 1):
        if nx <= 0 or ny <= 0:
            raise ValueError(f"Grid shape must be positive, got {nx}x{ny}")

        self.nx = nx
        self.ny = ny
        self.dx = dx
        self.dy = dy
        self.dt = cfl_time_step(dx, dy)

        self.synthesizer = FieldSynthesizer(profile=profile, n_jobs=n_jobs)
        self.state = SimulationState.UNINITIALIZED
        self.statistics: Optional[FieldStatistics] = None
        # Dipoles actually drawn; includes the fallback when none were added
        self.synthesized_dipoles: List[DipoleSource] = []

        self._grid = np.zeros((ny, nx), dtype=np.float32)
        self.excitation = np.zeros((ny, nx), dtype=np.float32)
        self.eps_r = np.ones((ny, nx), dtype=np.float32)

        self.dipoles: List[DipoleSource] = []
        self.sources: List[WaveSource] = []

        logger.info("Simulation initialized: %dx%d, dt=%.4e s", nx, ny, self.dt)

    @classmethod
    def from_config(cls, config) -> 'MagneticFieldSimulation':
        """Build a simulation from a ``SimulationConfig``."""
        grid = config.grid
        sim = cls(grid.nx, grid.ny, grid.dx, grid.dy,
                  profile=config.visualization.profile, n_jobs=config.n_jobs)
        for block in config.materials:
            sim.add_material_block(block)
        for source in config.sources:
            sim.add_source(source)
        for dipole in config.dipoles:
            sim.add_dipole(dipole)
        return sim

    @property
    def grid_shape(self) -> Tuple[int, int]:
        return self.nx, self.ny

    @property
    def profile(self) -> FieldProfile:
        return self.synthesizer.profile

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def add_dipole(self, dipole: DipoleSource):
        """Register a dipole. Takes effect on the next synthesis after reset()."""
        logger.debug("Adding dipole %s", dipole)
        self.dipoles.append(dipole)

    def add_source(self, config: SourceConfig) -> WaveSource:
        logger.debug("Adding source at (%d,%d) type=%s amplitude=%s",
                     config.x, config.y, config.type, config.amplitude)
        source = WaveSource(config)
        self.sources.append(source)
        return source

    def add_material_block(self, block: MaterialBlock):
        """Paint ``block.eps_r`` into the permittivity map, clipped to the grid."""
        logger.debug("Adding material block at (%d,%d) size %dx%d eps_r=%s",
                     block.x0, block.y0, block.w, block.h, block.eps_r)
        x_start, y_start = max(0, block.x0), max(0, block.y0)
        x_end = min(self.nx, block.x0 + block.w)
        y_end = min(self.ny, block.y0 + block.h)
        if x_end > x_start and y_end > y_start:
            self.eps_r[y_start:y_end, x_start:x_end] = block.eps_r

    # -------------------------------------------------------------------------
    # Static synthesis
    # -------------------------------------------------------------------------

    def synthesize_static(self) -> np.ndarray:
        """
        Fill the grid from the configured dipoles.

        Runs once; further calls are no-ops until reset().

        Returns:
            Read-only view of the grid
        """
        if self.state is SimulationState.SYNTHESIZED:
            logger.debug("Field already synthesized; call reset() to rebuild it")
            return self.get_grid()

        self._grid[:] = self.synthesizer.synthesize(self.grid_shape, self.dipoles)
        self.statistics = self.synthesizer.last_statistics
        self.synthesized_dipoles = list(self.synthesizer.last_dipoles)
        self.state = SimulationState.SYNTHESIZED
        return self.get_grid()

    synthesize = synthesize_static

    def get_grid(self) -> np.ndarray:
        view = self._grid.view()
        view.flags.writeable = False
        return view

    # -------------------------------------------------------------------------
    # Time stepping
    # -------------------------------------------------------------------------

    def advance_time_step(self, step_index: int) -> np.ndarray:
        """
        Accumulate every wave source's value at ``step_index`` into the
        excitation buffer. Sources outside the grid are skipped.

        Returns:
            The excitation buffer
        """
        for source in self.sources:
            i, j = source.position
            if not (0 <= i < self.nx and 0 <= j < self.ny):
                continue
            val = source.value(step_index)
            self.excitation[j, i] += val
            logger.debug("Step %d: source at (%d,%d) value=%.6g", step_index, i, j, val)
        return self.excitation

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset(self):
        """Zero the grid and excitation and return to UNINITIALIZED."""
        self._grid.fill(0.0)
        self.excitation.fill(0.0)
        for source in self.sources:
            source.reset()
        self.statistics = None
        self.synthesized_dipoles = []
        self.state = SimulationState.UNINITIALIZED
        logger.info("Simulation reset")


# =============================================================================
# Module-level exports
# =============================================================================
__all__ = [
    'fallback_dipoles',
    'pole_value',
    'synthesize_rows',
    'FieldStatistics',
    'FieldSynthesizer',
    'SimulationState',
    'MagneticFieldSimulation',
]
