"""
PID control demo: drive a car in the middle of the road.

The car is randomly pushed to one of the sides, like a gust of wind, and the
controller steers it back towards the middle. The correction is limited to
MAX_CORRECTION columns per tick, and the gains are suboptimal on purpose to
show oscillation and overshoot.

Usage:
    python -m pid_road
    python -m pid_road --steps 300 --seed 1 --fps 0 --plot
"""
import argparse
import itertools
import logging
import time
import numpy as np
from .controller import PIDConfig, PIDController, PIDFlags
from .dynamic import Car, ClosedLoop, Road, Trajectory, random_pushes

logger = logging.getLogger(__name__)

MAX_CORRECTION = 7.5
DESIRED_FPS = 10

DEMO_CONFIG = PIDConfig(
    p_gain=0.85,
    i_gain=0.05,
    d_gain=0.02,
    output_limits=(-MAX_CORRECTION, MAX_CORRECTION),
    # windup protection, saturated output
    flags=PIDFlags.RESET_ACC_ON_ZERO_CROSS | PIDFlags.CLAMP_OUTPUT,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pid_road", description="Keep a car in the middle of the road with a PID controller.")
    parser.add_argument("--steps", type=int, default=None, help="number of ticks to run (default: forever)")
    parser.add_argument("--fps", type=float, default=DESIRED_FPS, help="frames per second, 0 for no delay")
    parser.add_argument("--seed", type=int, default=None, help="seed for the random pushes")
    parser.add_argument("--plot", action="store_true", help="plot the trajectory when done (needs --steps)")
    parser.add_argument("--log-level", default="WARNING", help="logging level, e.g. DEBUG")
    return parser.parse_args(argv)


def run(steps=None, fps: float = DESIRED_FPS, seed=None, out=print) -> Trajectory:
    road = Road()
    loop = ClosedLoop(Car(road), PIDController.from_config(DEMO_CONFIG))
    rng = np.random.default_rng(seed)
    delay = 1.0 / fps if fps > 0 else 0.0

    positions, corrections, accumulators = [], [], []
    ticks = range(steps) if steps is not None else itertools.count()
    for _ in ticks:
        disturbance = random_pushes(1, rng, road.screen_width)[0]
        correction = loop.step(disturbance)
        position = loop.plant.get_position()
        out(road.render(position, loop.controller.i_accumulator))
        positions.append(position)
        corrections.append(correction)
        accumulators.append(loop.controller.i_accumulator)
        if delay:
            time.sleep(delay)

    return Trajectory(np.array(positions), np.array(corrections), np.array(accumulators))


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    if args.plot and args.steps is None:
        raise SystemExit("--plot needs --steps")

    try:
        trajectory = run(args.steps, args.fps, args.seed)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0

    if args.plot:
        trajectory.plot(Road())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
