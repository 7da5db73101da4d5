from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np
import matplotlib.pyplot as plt
from .controller import PIDController

logger = logging.getLogger(__name__)


@dataclass
class Road:
    screen_width: int = 101
    road_width: int = 80
    road_begin: int = 11

    def __post_init__(self):
        if self.road_begin + self.road_width >= self.screen_width:
            raise ValueError(
                f"Road [{self.road_begin}, {self.road_begin + self.road_width}] "
                f"does not fit on a screen of width {self.screen_width}")

    @property
    def middle(self) -> int:
        return self.road_begin + self.road_width // 2

    @property
    def end(self) -> int:
        return self.road_begin + self.road_width

    def render(self, position: float, accumulator: float) -> str:
        """Draw one frame: the car as 'X' between the road markings."""
        column = int(position + 0.5)
        markings = (self.road_begin, self.middle, self.end)
        cells = []
        for i in range(self.screen_width):
            if i == column:
                cells.append('X')
            elif i in markings:
                cells.append('|')
            else:
                cells.append(' ')
        return ''.join(cells) + f" pos = {column}, acc={accumulator:.2f}"


class Car:
    def __init__(self, road: Road):
        self.road = road
        self.position = float(road.middle)

    def push(self, disturbance: float):
        self.position += disturbance

    def steer(self, correction: float):
        self.position -= correction
        # keep the car on the visible area
        self.position = min(max(self.position, 0.0), float(self.road.screen_width))

    def get_position(self) -> float:
        return self.position

    def reset_state(self):
        self.position = float(self.road.middle)


def random_pushes(steps: int, rng: np.random.Generator, width: int = 101) -> np.ndarray:
    """Random lateral pushes: mostly small jitter, now and then a gust of wind.

    A byte is drawn per step; values above 0xF0 push by up to half the
    screen width, anything else by up to 4 columns. The sign is a coin flip.
    """
    r = rng.integers(0, 256, size=steps)
    gust = r > 0xF0
    magnitude = np.where(gust,
                         rng.integers(0, width // 2, size=steps),
                         rng.integers(0, 5, size=steps))
    sign = np.where(r & 1, 1, -1)
    return (sign * magnitude).astype(float)


class Trajectory:
    def __init__(self, position: np.ndarray, correction: np.ndarray, accumulator: np.ndarray):
        self.position = position
        self.correction = correction
        self.accumulator = accumulator

    def plot(self, road: Optional[Road] = None):
        steps = np.arange(len(self.position))
        fig, (ax_pos, ax_ctrl) = plt.subplots(2, 1, sharex=True)
        if road is not None:
            ax_pos.fill_between(steps, road.road_begin, road.end, color='grey', alpha=0.2)
            ax_pos.axhline(road.middle, color='r', linestyle='--', label='Setpoint')
        ax_pos.plot(steps, self.position, label='Position')
        ax_pos.legend(loc='upper right')
        ax_ctrl.plot(steps, self.correction, label='Correction')
        ax_ctrl.plot(steps, self.accumulator, label='Accumulator')
        ax_ctrl.legend(loc='upper right')
        plt.show()


class ClosedLoop:
    def __init__(self, plant: Car, controller: PIDController):
        self.plant = plant
        self.controller = controller

    @property
    def setpoint(self) -> float:
        return float(self.plant.road.middle)

    def step(self, disturbance: float) -> float:
        """Push the car, then steer it back. Returns the applied correction."""
        self.plant.push(disturbance)
        position = self.plant.get_position()
        error = position - self.setpoint
        correction = self.controller.update(error, position)
        self.plant.steer(correction)
        return correction

    def simulate(self, disturbances: np.ndarray) -> Trajectory:
        T = len(disturbances)
        if T == 0:
            raise ValueError("Disturbances must contain at least one step")

        positions = np.zeros(T)
        corrections = np.zeros(T)
        accumulators = np.zeros(T)
        self.plant.reset_state()
        self.controller.reset()

        for t in range(T):
            corrections[t] = self.step(disturbances[t])
            positions[t] = self.plant.get_position()
            accumulators[t] = self.controller.i_accumulator

        logger.debug("Simulated %d steps, final position %.2f", T, positions[-1])
        return Trajectory(positions, corrections, accumulators)

    def simulate_with_random_disturbances(self, steps: int, seed: Optional[int] = None) -> Trajectory:
        rng = np.random.default_rng(seed)
        disturbances = random_pushes(steps, rng, self.plant.road.screen_width)
        return self.simulate(disturbances)
