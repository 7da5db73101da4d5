from __future__ import annotations
import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class PIDFlags(enum.IntFlag):
    """Optional behaviours of :class:`PIDController`. Members combine freely."""

    DEFAULT_BEHAVIOR = 0
    # clamp the correction to the output min/max
    CLAMP_OUTPUT = 1
    # Clegg integrator: reset the accumulator when the error changes sign
    RESET_ACC_ON_ZERO_CROSS = 2
    # limit the accumulator to the output min/max
    CLAMP_ACC_TO_OUTPUT_BOUNDS = 4


DEFAULT_BEHAVIOR = PIDFlags.DEFAULT_BEHAVIOR
CLAMP_OUTPUT = PIDFlags.CLAMP_OUTPUT
RESET_ACC_ON_ZERO_CROSS = PIDFlags.RESET_ACC_ON_ZERO_CROSS
CLAMP_ACC_TO_OUTPUT_BOUNDS = PIDFlags.CLAMP_ACC_TO_OUTPUT_BOUNDS


@dataclass
class PIDConfig:
    p_gain: float
    i_gain: float = 0.0
    d_gain: float = 0.0
    output_limits: Optional[Tuple[float, float]] = None
    flags: PIDFlags = PIDFlags.DEFAULT_BEHAVIOR


def _clamp(value: float, lo: float, hi: float) -> float:
    if value > hi:
        return hi
    elif value < lo:
        return lo
    return value


# PID controller implemented as a small stateful class with reset() and update().
# Driven by a caller (e.g. ClosedLoop) that feeds one (error, input) pair per tick.
class PIDController:
    """Single-input/single-output PID controller with anti-windup flags.

    Effects of increasing each gain independently:

    ====  ============  =========  =============  ==================  ==================
    Gain  Rise time     Overshoot  Settling time  Steady-state error  Stability
    ====  ============  =========  =============  ==================  ==================
    P     Decrease      Increase   Small change   Decrease            Degrade
    I     Decrease      Increase   Increase       Eliminate           Degrade
    D     Small change  Decrease   Decrease       No effect (theory)  Improve if small D
    ====  ============  =========  =============  ==================  ==================

    The derivative term is a plain backward difference of the measured input,
    not divided by a time step, so ``update`` has to be called at a constant
    cadence for ``d_gain`` to keep its meaning.

    Instances are not thread-safe; callers sharing one must serialize access.
    """

    def __init__(self, p_gain: float, i_gain: float = 0.0, d_gain: float = 0.0):
        # no limits until set_limits() is called, so the clamp flags are no-ops
        self.output_min = -math.inf
        self.output_max = math.inf
        self.initialize(p_gain, i_gain, d_gain)

    @classmethod
    def from_config(cls, config: PIDConfig) -> PIDController:
        pid = cls(config.p_gain, config.i_gain, config.d_gain)
        if config.output_limits is not None:
            pid.set_limits(*config.output_limits)
        pid.set_flags(config.flags)
        return pid

    def initialize(self, p_gain: float, i_gain: float, d_gain: float) -> None:
        """Set the gains, zero the running state and drop all flags."""
        self.p_gain = p_gain
        self.i_gain = i_gain
        self.d_gain = d_gain
        self.flags = PIDFlags.DEFAULT_BEHAVIOR
        self.reset()

    def reset(self) -> None:
        """Zero integrator and derivative state for a fresh control session.

        Gains, limits and flags are kept.
        """
        self.i_accumulator = 0.0
        self.d_last_input = 0.0
        # previous error, used to detect a sign change for RESET_ACC_ON_ZERO_CROSS
        self.last_error = 0.0
        self.last_p = 0.0
        self.last_i = 0.0
        self.last_d = 0.0
        logger.debug("PID state reset (gains p=%s i=%s d=%s)", self.p_gain, self.i_gain, self.d_gain)

    def set_flags(self, flags: int) -> None:
        """Replace the behaviour flags wholesale."""
        self.flags = PIDFlags(flags)
        logger.debug("PID flags set to %r", self.flags)

    def set_limits(self, out_min: float, out_max: float) -> None:
        if not out_min < out_max:
            raise ValueError(f"Output limits must satisfy min < max, got min={out_min}, max={out_max}")
        self.output_min = out_min
        self.output_max = out_max
        logger.debug("PID output limits set to [%s, %s]", out_min, out_max)

    @property
    def output_limits(self) -> Tuple[float, float]:
        return self.output_min, self.output_max

    def update(self, error: float, input: float) -> float:
        """Run one control tick and return the correction.

        Args:
            error: distance of the process from its setpoint
            input: current measured process value, used for the derivative

        Returns:
            correction p + i + d, clamped when CLAMP_OUTPUT is set
        """
        # reset accumulator on zero-crossing, before this tick's error is added
        if self.flags & PIDFlags.RESET_ACC_ON_ZERO_CROSS:
            if (error > 0 and self.last_error <= 0) or (error < 0 and self.last_error >= 0):
                logger.debug("Zero crossing (%s -> %s), accumulator %s reset", self.last_error, error, self.i_accumulator)
                self.i_accumulator = 0.0
        self.last_error = error

        # accumulate errors
        self.i_accumulator += error

        # limit accumulator to the output bounds
        if self.flags & PIDFlags.CLAMP_ACC_TO_OUTPUT_BOUNDS:
            self.i_accumulator = _clamp(self.i_accumulator, self.output_min, self.output_max)

        # P, I and D terms individually; derivative of the negative input change
        self.last_p = self.p_gain * error
        self.last_i = self.i_gain * self.i_accumulator
        self.last_d = self.d_gain * (self.d_last_input - input)
        # update derivative memory after use
        self.d_last_input = input

        correction = self.last_p + self.last_i + self.last_d

        if self.flags & PIDFlags.CLAMP_OUTPUT:
            correction = _clamp(correction, self.output_min, self.output_max)
        return correction
