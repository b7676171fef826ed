# main.py
"""
Main entry point for the Particle Life simulation.

This script orchestrates the entire simulation lifecycle:
1. Resolves configuration from defaults, an optional JSON file and flags.
2. Initializes the logging system.
3. Builds or loads the ruleset and the simulation.
4. Runs either the interactive viewer or the headless loop.
5. Handles clean shutdown, saving a checkpoint after headless runs.
"""
import argparse
import cProfile
import io
import logging
import pstats
import sys
import time
from typing import Any, Dict, List, Optional

import numpy as np

from boundary import boundary_from_name
from constants import REALTIME_STEPS_PER_SECOND
from ruleset import RuleSet
from serialize import load_checkpoint, load_ruleset, save_checkpoint
from simulation import Simulation
from templates import PRESETS, get_preset, template_from_config
from utils import resolve_config, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="particle-life", description="Particle life simulator")
    parser.add_argument("--config", help="JSON configuration file layered over the defaults")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--preset", choices=sorted(PRESETS), help="sample the ruleset from a named template")
    source.add_argument("--ruleset", metavar="PATH", help="load the ruleset from a JSON file")
    source.add_argument("--load", metavar="CHECKPOINT", help="resume a saved simulation")

    parser.add_argument("--points", type=int, help="number of particles")
    parser.add_argument("--walls", choices=["none", "square", "wrapping"], help="boundary type")
    parser.add_argument("--wall-dist", type=float, help="half-width of the domain for square/wrapping walls")
    parser.add_argument("--seed", type=int, help="seed for ruleset sampling and particle placement")
    parser.add_argument("--backend", choices=["cpu", "gpu"], help="execution backend")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="refuse rulesets with min_r >= max_r for any type pair")

    parser.add_argument("--headless", action="store_true", default=None, help="run without a window")
    parser.add_argument("--steps", type=int, help="stop after this many steps")
    parser.add_argument("--checkpoint", type=int, help="report progress every N steps when headless")
    parser.add_argument("--save", metavar="PATH", help="checkpoint path written at the end of a headless run")
    parser.add_argument("--profile", action="store_true", help="log a cProfile summary of the run")
    return parser


def apply_arguments(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Overlays explicitly given command-line flags onto the resolved config."""
    sim_params = config["simulation"]
    run_params = config["run_control"]
    for key, value in (("points", args.points), ("walls", args.walls), ("wall_dist", args.wall_dist),
                       ("seed", args.seed), ("backend", args.backend), ("strict", args.strict)):
        if value is not None:
            sim_params[key] = value
    for key, value in (("headless", args.headless), ("steps", args.steps),
                       ("checkpoint", args.checkpoint), ("save_path", args.save)):
        if value is not None:
            run_params[key] = value
    if args.preset is not None:
        config["ruleset"] = {"preset": args.preset}
    elif args.ruleset is not None:
        config["ruleset"] = {"path": args.ruleset}
    return config


def build_ruleset(section: Dict[str, Any], rng: np.random.Generator) -> RuleSet:
    """Resolves the ruleset source: a file, an inline template or a preset."""
    if section.get("path"):
        return load_ruleset(section["path"])
    if section.get("template"):
        return template_from_config(section["template"]).sample(rng)
    return get_preset(section.get("preset", "diversity")).sample(rng)


def build_simulation(config: Dict[str, Any], load_path: Optional[str] = None) -> Simulation:
    sim_params = config["simulation"]
    backend = sim_params.get("backend", "cpu")
    if load_path:
        return load_checkpoint(load_path, backend=backend)

    rng = np.random.default_rng(sim_params.get("seed"))
    boundary = boundary_from_name(sim_params.get("walls", "none"), sim_params.get("wall_dist"))
    ruleset = build_ruleset(config["ruleset"], rng)
    return Simulation(
        sim_params["points"], ruleset, boundary,
        rng=rng, backend=backend, strict=bool(sim_params.get("strict", False))
    )


def run_headless(simulation: Simulation, checkpoint: Optional[int], max_steps: Optional[int]) -> int:
    """
    Steps until max_steps is reached or the user presses Ctrl-C.

    Returns the number of steps taken. Interruption only ever happens
    between ticks, so the state left behind is always consistent.
    """
    steps = 0
    steps_since_checkpoint = 0
    start = time.perf_counter()
    last_checkpoint = start

    try:
        while max_steps is None or steps < max_steps:
            simulation.step()
            steps += 1
            steps_since_checkpoint += 1

            # Rule 2.4: Hot loops must throttle logs
            if checkpoint and steps % checkpoint == 0:
                now = time.perf_counter()
                tps = steps_since_checkpoint / max(now - last_checkpoint, 1e-9)
                logging.info(
                    f"Checkpoint {steps // checkpoint}. {steps} steps total. "
                    f"Running time: {now - start:.2f}s. "
                    f"Average steps per second since last checkpoint: {tps:.0f} "
                    f"({tps / REALTIME_STEPS_PER_SECOND:.1f}x realtime)"
                )
                avg_velocity = np.mean(np.linalg.norm(simulation.velocities, axis=1)) if simulation.population else 0.0
                logging.debug(f"Tick {simulation.tick} | Average Velocity: {avg_velocity:.4f}")
                last_checkpoint = now
                steps_since_checkpoint = 0
    except KeyboardInterrupt:
        logging.info("Interrupted by user. Stopping at the current tick boundary.")

    logging.info(f"Ran {steps} steps in {time.perf_counter() - start:.2f}s.")
    return steps


def run_headed(simulation: Simulation, vis_params: Dict[str, Any]) -> None:
    # Imported here so headless runs never initialize a display.
    from visualization import Visualizer

    visualizer = Visualizer(
        num_types=simulation.ruleset.num_types,
        width=vis_params["width"],
        height=vis_params["height"],
        colors=vis_params.get("particle_colors"),
        ticks_per_frame=vis_params.get("ticks_per_frame", 1),
        extent=simulation.boundary.extent,
    )
    try:
        visualizer.run(simulation)
    finally:
        visualizer.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main function to run the simulation.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = apply_arguments(resolve_config(args.config), args)
    except Exception as e:
        print(f"FATAL: Could not load configuration. Error: {e}", file=sys.stderr)
        return 1

    sim_params = config["simulation"]
    bounded = str(sim_params.get("walls", "none")).lower() not in ("none", "open")
    if bounded and sim_params.get("wall_dist") is None and not args.load:
        parser.error("square and wrapping walls require --wall-dist")

    setup_logging(config)
    logging.info("--- Particle Life Simulation Starting ---")

    try:
        simulation = build_simulation(config, load_path=args.load)
    except (ValueError, RuntimeError, OSError) as e:
        logging.critical(f"Could not create the simulation: {e}")
        return 1

    run_params = config["run_control"]
    profiler = cProfile.Profile() if args.profile else None
    if profiler:
        profiler.enable()

    if run_params.get("headless"):
        run_headless(simulation, run_params.get("checkpoint"), run_params.get("steps"))
        save_path = run_params.get("save_path") or f"{int(time.time())}.npz"
        logging.info("Saving checkpoint, please wait...")
        save_start = time.perf_counter()
        save_checkpoint(simulation, save_path)
        logging.info(f"Saved in {time.perf_counter() - save_start:.2f}s.")
    else:
        run_headed(simulation, config["visualization"])

    if profiler:
        profiler.disable()
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Life Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
