"""
Driver controls - Digital and analog input combination.

Provides:
- InputState: one tick's worth of driver input
- Throttle and steering multipliers (analog overrides digital when non-zero)
- InputMapper: latches gamepad trigger events between ticks

Device polling itself is outside this package; callers translate their
key/gamepad state into these types once per tick.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Set
import logging

import numpy as np

logger = logging.getLogger(__name__)


class Key(Enum):
    """Digital driver keys."""
    ACCELERATE = "W"
    BRAKE = "S"
    TURN_LEFT = "A"
    TURN_RIGHT = "D"
    RESET = "R"


class GamepadButton(Enum):
    """Gamepad buttons the pipeline reacts to."""
    LEFT_TRIGGER = "LeftTrigger2"
    RIGHT_TRIGGER = "RightTrigger2"
    START = "Start"
    OTHER = "Other"


@dataclass(frozen=True)
class ButtonEvent:
    """Gamepad button change (value in [0, 1])."""
    button: GamepadButton
    value: float


@dataclass
class InputState:
    """Driver input for a single tick."""
    # Digital
    accelerate: bool = False
    brake: bool = False
    turn_left: bool = False
    turn_right: bool = False
    reset: bool = False          # reset key pressed this tick

    # Analog
    steer_axis: float = 0.0      # left stick X, -1 (left) to 1 (right)
    left_trigger: float = 0.0    # 0 to 1, brake/reverse
    right_trigger: float = 0.0   # 0 to 1, throttle
    start_pressed: bool = False  # start button pressed this tick

    def throttle_multiplier(self) -> float:
        """Signed throttle in [-1, 1].

        Accelerate gives 1, brake gives -1. A non-zero left trigger
        overrides with its negated value, otherwise a non-zero right trigger
        overrides with its value.
        """
        if self.accelerate:
            multiplier = 1.0
        elif self.brake:
            multiplier = -1.0
        else:
            multiplier = 0.0

        if self.left_trigger != 0.0:
            multiplier = -self.left_trigger
        elif self.right_trigger != 0.0:
            multiplier = self.right_trigger
        return float(np.clip(multiplier, -1.0, 1.0))

    def steer_multiplier(self) -> float:
        """Signed steering in [-1, 1], positive = turn left.

        Turn right gives -1, turn left gives 1; a non-zero stick axis
        overrides with its negated value.
        """
        if self.turn_right:
            multiplier = -1.0
        elif self.turn_left:
            multiplier = 1.0
        else:
            multiplier = 0.0

        if self.steer_axis != 0.0:
            multiplier = -self.steer_axis
        return float(np.clip(multiplier, -1.0, 1.0))

    @property
    def reset_requested(self) -> bool:
        """Reset key or start button pressed this tick."""
        return self.reset or self.start_pressed


@dataclass
class InputMapper:
    """Builds InputState from raw key and gamepad state.

    Trigger values arrive as change events, so the last value seen for each
    trigger is kept until the next event for that trigger.
    """
    _left_trigger: float = 0.0
    _right_trigger: float = 0.0
    _pressed: Set[Key] = field(default_factory=set)

    @property
    def left_trigger(self) -> float:
        return self._left_trigger

    @property
    def right_trigger(self) -> float:
        return self._right_trigger

    def update(
        self,
        pressed: Iterable[Key] = (),
        button_events: Iterable[ButtonEvent] = (),
        stick_x: Optional[float] = None,
    ) -> InputState:
        """Combine this tick's device state into an InputState.

        Args:
            pressed: Keys currently held down
            button_events: Gamepad button events since the last tick
            stick_x: Left stick X axis, if a gamepad is connected

        Returns:
            InputState for the tick
        """
        pressed = set(pressed)
        just_pressed = pressed - self._pressed
        self._pressed = pressed

        start_pressed = False
        for event in button_events:
            if event.button is GamepadButton.RIGHT_TRIGGER:
                self._right_trigger = event.value
            elif event.button is GamepadButton.LEFT_TRIGGER:
                self._left_trigger = event.value
            elif event.button is GamepadButton.START and event.value != 0.0:
                start_pressed = True

        reset = Key.RESET in just_pressed
        if reset or start_pressed:
            logger.debug("Reset requested by driver input")

        return InputState(
            accelerate=Key.ACCELERATE in pressed,
            brake=Key.BRAKE in pressed,
            turn_left=Key.TURN_LEFT in pressed,
            turn_right=Key.TURN_RIGHT in pressed,
            reset=reset,
            steer_axis=stick_x or 0.0,
            left_trigger=self._left_trigger,
            right_trigger=self._right_trigger,
            start_pressed=start_pressed,
        )
