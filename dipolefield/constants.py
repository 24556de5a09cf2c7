# =============================================================================
# CONSTANTS: Field Synthesis and Display Parameters
# =============================================================================
"""
Grid, field-synthesis and display-range parameters for the dipole field viewer.

Constants are organized into:
    - Physical constants (used only for the CFL time step)
    - Grid defaults
    - Field synthesis profiles (near-field threshold, scale, pole value, clamp)
    - Display range control (coarse/fine steps, minimum range)
    - Fallback dipole arrangement
"""

from dataclasses import dataclass

import numpy as np

# =============================================================================
# Physical Constants
# =============================================================================
SPEED_OF_LIGHT = 3e8                 # m/s
CFL_SAFETY = 0.99                    # Fraction of the Courant limit used for dt

# =============================================================================
# Grid Defaults
# =============================================================================
NX_DEFAULT = 256
NY_DEFAULT = 256
DX_DEFAULT = 0.002                   # Grid spacing in meters
DY_DEFAULT = 0.002
MAX_STEPS_DEFAULT = 10000

# Used when no configuration file can be read
NX_FALLBACK = 512
NY_FALLBACK = 512
DX_FALLBACK = 0.001
DY_FALLBACK = 0.001
COLOR_RANGE_FALLBACK = 1.8


# =============================================================================
# Field Synthesis Profiles
# =============================================================================
@dataclass(frozen=True)
class FieldProfile:
    """
    Tuned constants for one synthesis variant.

    Attributes:
        near_threshold: Squared distance (grid units²) at or below which a
            dipole contributes its pole value instead of the 1/r³ term.
        scale: Visualization gain applied to |B|. Not a physical unit.
        pole_magnitude: Magnitude of the pole indicator; larger than typical
            far-field peaks so source locations stand out.
        clamp: Output values are clamped to [-clamp, +clamp].
        active_eps: Cells with |value| above this count as active (reporting).
    """
    near_threshold: float = 4.0
    scale: float = 60.0
    pole_magnitude: float = 3.0
    clamp: float = 4.0
    active_eps: float = 0.01


FIELD_PROFILES = {
    'standard': FieldProfile(),
    'high_resolution': FieldProfile(pole_magnitude=3.5, clamp=5.0),
}
DEFAULT_PROFILE = 'standard'

# Convenience aliases for the standard profile
NEAR_THRESHOLD = FIELD_PROFILES[DEFAULT_PROFILE].near_threshold
FIELD_SCALE = FIELD_PROFILES[DEFAULT_PROFILE].scale
POLE_MAGNITUDE = FIELD_PROFILES[DEFAULT_PROFILE].pole_magnitude
CLAMP = FIELD_PROFILES[DEFAULT_PROFILE].clamp
ACTIVE_EPS = FIELD_PROFILES[DEFAULT_PROFILE].active_eps

# =============================================================================
# Display Range Control
# =============================================================================
COLOR_RANGE_DEFAULT = 1.0
MIN_RANGE = 0.1                      # Floor applied after every decrement
COARSE_STEP = 0.05
FINE_STEP = 0.02

# =============================================================================
# Fallback Dipoles
# =============================================================================
# (offset, (moment_x, moment_y), strength, name)
# offset counts steps of nx // FALLBACK_SPACING_DIV from the centre column
# nx // 2; all fallback dipoles sit on row ny // 2. A north pole at the centre
# flanked by two weaker south poles mirrored about it.
FALLBACK_SPACING_DIV = 6
FALLBACK_DIPOLES = [
    (0, (0.0, 1.0), 2.0, 'center_north'),
    (-1, (0.0, -1.0), 1.5, 'left_south'),
    (1, (0.0, -1.0), 1.5, 'right_south'),
]


def get_profile(name):
    """
    Look up a synthesis profile by name.

    Raises:
        ValueError: If no profile is registered under ``name``
    """
    if name not in FIELD_PROFILES:
        raise ValueError(f"Unknown field profile '{name}'. Available: {list(FIELD_PROFILES.keys())}")
    return FIELD_PROFILES[name]


def cfl_time_step(dx, dy):
    """
    Courant-limited time step for a 2D grid.

    dt = CFL_SAFETY / (c * sqrt(1/dx² + 1/dy²))
    """
    return CFL_SAFETY / (SPEED_OF_LIGHT * np.sqrt(1.0 / dx ** 2 + 1.0 / dy ** 2))


# =============================================================================
# Module-level exports
# =============================================================================
__all__ = [
    # Physical constants
    'SPEED_OF_LIGHT', 'CFL_SAFETY',
    # Grid
    'NX_DEFAULT', 'NY_DEFAULT', 'DX_DEFAULT', 'DY_DEFAULT', 'MAX_STEPS_DEFAULT',
    'NX_FALLBACK', 'NY_FALLBACK', 'DX_FALLBACK', 'DY_FALLBACK', 'COLOR_RANGE_FALLBACK',
    # Profiles
    'FieldProfile', 'FIELD_PROFILES', 'DEFAULT_PROFILE',
    'NEAR_THRESHOLD', 'FIELD_SCALE', 'POLE_MAGNITUDE', 'CLAMP', 'ACTIVE_EPS',
    # Display range
    'COLOR_RANGE_DEFAULT', 'MIN_RANGE', 'COARSE_STEP', 'FINE_STEP',
    # Fallback
    'FALLBACK_DIPOLES', 'FALLBACK_SPACING_DIV',
    # Functions
    'get_profile', 'cfl_time_step',
]
