# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the engine and its viewer: the fixed terms of
the force law, initial spawn spread, GPU launch geometry and rendering
properties. Experimental settings live in the configuration instead.
"""

import numpy as np

# --- Force Law ---
# Softening term of the short-range repulsive branch. Keeps the force
# finite as the separation goes to zero.
R_SMOOTH = 2.0
# Pairs closer than this (squared) are treated as coincident and skipped.
MIN_DISTANCE_SQ = 0.01

# --- Particle State ---
# Rule 11.6: Use float32 for performance.
FLOAT_DTYPE = np.float32
TYPE_DTYPE = np.int32
# Standard deviation of the initial position cloud for unbounded worlds.
OPEN_SPAWN_STD = 5.0

# --- GPU Execution ---
THREADS_PER_BLOCK = 128

# --- Headless Runner ---
# Steps per second that count as "realtime" in progress reports.
REALTIME_STEPS_PER_SECOND = 60.0

# --- Visualization settings ---
WINDOW_WIDTH = 1200
WINDOW_HEIGHT = 800
UI_PANEL_WIDTH = 260
FPS = 60
BACKGROUND_COLOR = (24, 24, 24) # Dark Gray
BOUNDARY_COLOR = (90, 90, 90)
DEFAULT_PARTICLE_RADIUS = 2
UI_BACKGROUND_ALPHA = 100
MAX_TICKS_PER_FRAME = 64

# A curated list of vibrant default colors for particles, used if the
# config file does not provide a color list.
VIBRANT_COLORS = [
    (255, 0, 102),   # Hot Pink
    (0, 255, 255),   # Cyan
    (255, 204, 0),   # Gold
    (0, 255, 102),   # Bright Green
    (204, 0, 255),   # Purple
    (255, 102, 0)    # Orange
]

# Every setting the application reads, with its default. Values from a
# config file and then from the command line are layered on top.
DEFAULT_CONFIG = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/simulation.log",
    },
    "simulation": {
        "points": 1000,
        "walls": "none",
        "wall_dist": None,
        "seed": None,
        "backend": "cpu",
        "strict": False,
    },
    "ruleset": {
        "preset": "diversity",
    },
    "run_control": {
        "headless": False,
        "steps": None,
        "checkpoint": 100,
        "save_path": None,
    },
    "visualization": {
        "width": WINDOW_WIDTH,
        "height": WINDOW_HEIGHT,
        "ticks_per_frame": 1,
        "particle_colors": None,
    },
}
