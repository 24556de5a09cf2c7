#!/usr/bin/env python3
# =============================================================================
# Viewer Script: Interactive Dipole Field Display
# =============================================================================
"""
Load a scenario, synthesize the dipole field once and display it.

Controls (interactive window):
    UP/DOWN     = adjust color range (coarse, ±0.05)
    LEFT/RIGHT  = fine-tune color range (±0.02)
    R           = reset color range to the configured value
    ESC         = quit

Color legend:
    Violet/Blue  = strong south field
    Cyan         = medium south field
    Teal         = neutral/weak field
    Green/Yellow = medium north field
    Orange/Red   = strong north field

With --save PATH the figure is written to disk instead of opening a window.
"""

import argparse
import logging

from dipolefield.colormap import ScalarColorMapper
from dipolefield.config import DEFAULT_CONFIG_PATH, load_config_or_fallback
from dipolefield.controls import DisplayRange, RangeController
from dipolefield.logging_config import setup_logging
from dipolefield.simulation import MagneticFieldSimulation
from dipolefield.visualization import FieldViewer, visualize_simulation

logger = logging.getLogger("dipolefield.viewer")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Dipole field synthesis and viewer")
    parser.add_argument('--config', default=str(DEFAULT_CONFIG_PATH),
                        help="Path to a JSON scenario file")
    parser.add_argument('--save', default=None,
                        help="Write the figure to this path instead of opening a window")
    parser.add_argument('--n-jobs', type=int, default=None,
                        help="joblib workers for synthesis (overrides the config)")
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--log-file', default=None,
                        help="Also write the log to this file")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    cfg = load_config_or_fallback(args.config)
    if args.n_jobs is not None:
        cfg.n_jobs = args.n_jobs
    logger.info("Scenario: %s (%dx%d)", cfg.scenario, cfg.grid.nx, cfg.grid.ny)

    sim = MagneticFieldSimulation.from_config(cfg)
    sim.synthesize()

    display_range = DisplayRange(cfg.visualization.color_range)
    controller = RangeController(display_range)
    mapper = ScalarColorMapper(display_range, cfg.visualization.color_scheme)

    if args.save:
        visualize_simulation(sim.get_grid(), mapper, dipoles=sim.synthesized_dipoles,
                             statistics=sim.statistics, title=cfg.scenario,
                             save_path=args.save)
        logger.info("Figure saved to %s", args.save)
        return 0

    viewer = FieldViewer(sim, mapper, controller, title=cfg.scenario)
    viewer.show()
    logger.info("Viewer closed")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
