from .controller import (
    CLAMP_ACC_TO_OUTPUT_BOUNDS,
    CLAMP_OUTPUT,
    DEFAULT_BEHAVIOR,
    RESET_ACC_ON_ZERO_CROSS,
    PIDConfig,
    PIDController,
    PIDFlags,
)

__all__ = [
    "CLAMP_ACC_TO_OUTPUT_BOUNDS",
    "CLAMP_OUTPUT",
    "DEFAULT_BEHAVIOR",
    "RESET_ACC_ON_ZERO_CROSS",
    "PIDConfig",
    "PIDController",
    "PIDFlags",
]
