# well_tracker.py

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Optional

import numpy as np

import constants

logger = logging.getLogger("gravity_sandbox")


class InputKind(Enum):
    TOUCH = "touch"
    SYNTHETIC = "synthetic"
    POINTER = "pointer"


@dataclass(frozen=True)
class InputId:
    """
    Identifier of a touch/pointer contact.

    Two ids are equal when both their kind and key are equal, so a numeric
    touch id never collides with a synthetic (x, y, index) id or with the
    reserved pointer sentinel.
    """
    kind: InputKind
    key: tuple = ()

    @classmethod
    def touch(cls, touch_id: int) -> "InputId":
        return cls(InputKind.TOUCH, (int(touch_id),))

    @classmethod
    def synthetic(cls, x: float, y: float, index: int) -> "InputId":
        return cls(InputKind.SYNTHETIC, (float(x), float(y), int(index)))

    def __str__(self):
        if self.kind is InputKind.POINTER:
            return "pointer"
        return f"{self.kind.value}:{'-'.join(str(k) for k in self.key)}"


# Reserved id of the single mouse/pointer source.
InputId.POINTER = InputId(InputKind.POINTER)


@dataclass
class InputPoint:
    """One active contact as reported by the input layer for the current frame."""
    id: object
    x: float
    y: float
    pressure: Optional[float] = None


@dataclass
class Well:
    id: InputId
    x: float
    y: float
    strength: float
    start_time: float


class WellListener:
    """
    Receiver of well lifecycle transitions (e.g. an audio adapter).

    Both callbacks get a copy of the well; mutating it has no effect on the
    tracker. The default implementation ignores everything.
    """
    def on_well_updated(self, well_id: InputId, state: Well):
        pass

    def on_well_removed(self, well_id: InputId, last_state: Well):
        pass


def strength_for(duration: float, pressure: Optional[float],
                 base: float = constants.BASE_STRENGTH,
                 duration_rate: float = constants.DURATION_STRENGTH_RATE,
                 max_duration_term: float = constants.MAX_DURATION_STRENGTH,
                 pressure_scale: float = constants.PRESSURE_STRENGTH_SCALE) -> float:
    """
    Well strength from press duration (seconds) and pressure in [0, 1].
    Missing pressure counts as 0; out-of-range pressure is clipped.
    """
    pressure = 0.0 if pressure is None else float(np.clip(pressure, 0.0, 1.0))
    duration_term = float(np.clip(duration * duration_rate, 0.0, max_duration_term))
    return base + duration_term + pressure * pressure_scale


def resolve_input_id(point: InputPoint, index: int) -> InputId:
    if point.id is None:
        return InputId.synthetic(point.x, point.y, index)
    if isinstance(point.id, InputId):
        return point.id
    return InputId.touch(point.id)


class WellTracker:
    """
    Owns the active gravity wells, keyed by input id.

    Data Contract:
    - Inputs:
        - config (dict): The 'simulation' section ('max_wells', 'pointer_strength').
        - clock (callable): Returns the current time in seconds.
        - listeners (iterable of WellListener): Notified of updates and removals.
    - Outputs: current_wells() is a read-only live view of id -> Well.
    - Side Effects: Calls listener callbacks synchronously from reconcile()
      and update_pointer().
    - Invariants:
        - len(current_wells()) <= max_wells at all times.
        - Every well strength is >= 0.
    """
    def __init__(self, config: dict = None, clock=time.monotonic, listeners: Iterable[WellListener] = ()):
        config = config or {}
        self.max_wells = int(config.get('max_wells', constants.DEFAULT_MAX_WELLS))
        if self.max_wells < 1:
            raise ValueError(f"max_wells must be >= 1, got {self.max_wells}")
        self.pointer_strength = float(config.get('pointer_strength', constants.POINTER_STRENGTH))
        self.clock = clock

        self._wells = {}
        self._start_times = {}
        self._touch_active = False
        self._listeners = list(listeners)
        self._view = MappingProxyType(self._wells)

        logger.info(f"WellTracker created: max_wells={self.max_wells}, pointer_strength={self.pointer_strength}")

    def add_listener(self, listener: WellListener):
        self._listeners.append(listener)

    def begin_input(self, input_id: InputId, timestamp: float = None):
        """Records the press start for input_id unless one is already recorded."""
        if input_id not in self._start_times:
            self._start_times[input_id] = self.clock() if timestamp is None else float(timestamp)

    def end_input(self, input_id: InputId):
        """Forgets the press start; the well itself goes at the next reconcile()."""
        self._start_times.pop(input_id, None)

    def current_wells(self):
        return self._view

    def start_time_of(self, input_id: InputId) -> Optional[float]:
        return self._start_times.get(input_id)

    def reconcile(self, active_inputs: Iterable[InputPoint], now: float = None) -> list:
        """
        Rebuilds the well set from this frame's active inputs.

        Inputs past max_wells (in enumeration order) are ignored. Existing wells
        are updated in place; wells whose id is absent are removed and reported
        to the listeners. The pointer well survives only while no touch input
        is active. Returns the removed wells.
        """
        now = self.clock() if now is None else float(now)
        active_inputs = list(active_inputs)
        previous = dict(self._wells)
        rebuilt = {}

        for index, point in enumerate(active_inputs):
            if index >= self.max_wells:
                logger.debug(f"Well cap reached: ignoring {len(active_inputs) - index} extra input(s).")
                break
            input_id = resolve_input_id(point, index)
            start = self._start_times.get(input_id)
            duration = (now - start) if start is not None else 0.0
            strength = strength_for(duration, point.pressure)

            well = rebuilt.get(input_id) or previous.get(input_id)
            if well is None:
                well = Well(
                    id=input_id,
                    x=float(point.x),
                    y=float(point.y),
                    strength=strength,
                    start_time=start if start is not None else now,
                )
                logger.debug(f"Well created: id={input_id}, pos=({well.x:.1f}, {well.y:.1f}), strength={strength:.2f}")
            else:
                well.x = float(point.x)
                well.y = float(point.y)
                well.strength = strength
            rebuilt[input_id] = well

        self._touch_active = len(active_inputs) > 0
        if not self._touch_active and InputId.POINTER in previous:
            rebuilt[InputId.POINTER] = previous[InputId.POINTER]

        removed = [well for well_id, well in previous.items() if well_id not in rebuilt]

        self._wells.clear()
        self._wells.update(rebuilt)

        for well in rebuilt.values():
            self._emit_updated(well)
        for well in removed:
            logger.debug(f"Well removed: id={well.id}, last strength={well.strength:.2f}")
            self._emit_removed(well)
        return removed

    def update_pointer(self, pressed: bool, x: float, y: float, now: float = None) -> Optional[Well]:
        """
        Drives the single pointer/mouse well.

        While pressed (and no touch is active) the pointer well exists with the
        fixed pointer strength, independent of press duration or pressure.
        Releasing removes it immediately.
        """
        if not pressed:
            well = self._wells.pop(InputId.POINTER, None)
            if well is not None:
                logger.debug("Pointer well removed.")
                self._emit_removed(well)
            return None

        if self._touch_active:
            return None

        well = self._wells.get(InputId.POINTER)
        if well is None:
            if len(self._wells) >= self.max_wells:
                return None
            now = self.clock() if now is None else float(now)
            start = self._start_times.get(InputId.POINTER)
            well = Well(
                id=InputId.POINTER,
                x=float(x),
                y=float(y),
                strength=self.pointer_strength,
                start_time=start if start is not None else now,
            )
            self._wells[InputId.POINTER] = well
            logger.debug(f"Pointer well created at ({well.x:.1f}, {well.y:.1f}).")
        else:
            well.x = float(x)
            well.y = float(y)
            well.strength = self.pointer_strength
        self._emit_updated(well)
        return well

    def _emit_updated(self, well: Well):
        for listener in self._listeners:
            try:
                listener.on_well_updated(well.id, replace(well))
            except Exception:
                logger.warning(f"Listener {listener!r} failed on update of well {well.id}.", exc_info=True)

    def _emit_removed(self, well: Well):
        for listener in self._listeners:
            try:
                listener.on_well_removed(well.id, replace(well))
            except Exception:
                logger.warning(f"Listener {listener!r} failed on removal of well {well.id}.", exc_info=True)
