# input_handler.py

import logging

import numpy as np
import pygame

import constants
from well_tracker import InputId, InputPoint

logger = logging.getLogger("gravity_sandbox")


class InputHandler:
    """
    Translates pygame events into well-tracker and population commands.

    Touch contacts are kept in arrival order so the well cap drops the most
    recent contacts first. Mouse events that pygame synthesises from touches
    are ignored; the mouse is a separate, single pointer source.

    Data Contract:
    - Inputs:
        - simulation (Simulation): Target of all commands.
        - clock (callable): Time source in seconds, shared with the tracker.
        - pointer_lock (bool): If True the pointer moves by relative motion,
          clamped to the canvas, instead of following absolute positions.
    - Outputs: handle_event() returns False when the application should quit.
    - Side Effects: Mutates the simulation through its locked methods.
    """
    def __init__(self, simulation, clock, pointer_lock: bool = False, on_resize=None):
        self.simulation = simulation
        self.clock = clock
        self.pointer_lock = pointer_lock
        self.on_resize = on_resize
        self.touches = {}
        self.pointer_pressed = False
        width, height = simulation.bounds
        self.pointer_pos = [width / 2.0, height / 2.0]

    def active_inputs(self) -> list:
        return list(self.touches.values())

    def _touch_point(self, event) -> InputPoint:
        width, height = self.simulation.bounds
        pressure = getattr(event, 'pressure', None)
        return InputPoint(
            id=InputId.touch(event.finger_id),
            x=float(event.x) * width,
            y=float(event.y) * height,
            pressure=pressure,
        )

    def _move_pointer(self, event):
        width, height = self.simulation.bounds
        if self.pointer_lock:
            dx, dy = getattr(event, 'rel', (0, 0))
            self.pointer_pos[0] = float(np.clip(self.pointer_pos[0] + dx, 0.0, width))
            self.pointer_pos[1] = float(np.clip(self.pointer_pos[1] + dy, 0.0, height))
        else:
            self.pointer_pos[0], self.pointer_pos[1] = float(event.pos[0]), float(event.pos[1])

    def handle_event(self, event) -> bool:
        if event.type == pygame.QUIT:
            return False

        if event.type == pygame.FINGERDOWN:
            point = self._touch_point(event)
            self.touches[point.id] = point
            self.simulation.begin_input(point.id, self.clock())
            self.simulation.reconcile(self.active_inputs(), self.clock())
        elif event.type == pygame.FINGERMOTION:
            point = self._touch_point(event)
            self.touches[point.id] = point
            self.simulation.reconcile(self.active_inputs(), self.clock())
        elif event.type == pygame.FINGERUP:
            input_id = InputId.touch(event.finger_id)
            self.touches.pop(input_id, None)
            self.simulation.end_input(input_id)
            self.simulation.reconcile(self.active_inputs(), self.clock())

        elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
            if getattr(event, 'touch', False):
                return True
            if event.type == pygame.MOUSEMOTION:
                self._move_pointer(event)
            elif event.button == 1 and event.type == pygame.MOUSEBUTTONDOWN:
                if not self.pointer_lock:
                    self._move_pointer(event)
                self.pointer_pressed = True
                self.simulation.begin_input(InputId.POINTER, self.clock())
            elif event.button == 1:
                self.pointer_pressed = False
                self.simulation.end_input(InputId.POINTER)
                self.simulation.update_pointer(False, *self.pointer_pos)

        elif event.type == pygame.KEYDOWN:
            preset = self._preset_for_key(event.key)
            if preset is not None:
                self.simulation.set_particle_count(preset)
            elif event.key == pygame.K_ESCAPE:
                return False

        elif event.type == pygame.VIDEORESIZE:
            self.simulation.resize((event.w, event.h))
            if self.on_resize is not None:
                self.on_resize((event.w, event.h))

        return True

    @staticmethod
    def _preset_for_key(key):
        for digit, count in constants.PARTICLE_COUNT_PRESETS.items():
            if key == getattr(pygame, f"K_{digit}"):
                return count
        return None

    def poll(self):
        """Per-frame refresh: touch wells grow with press duration, pointer follows the mouse."""
        now = self.clock()
        self.simulation.reconcile(self.active_inputs(), now)
        if self.pointer_pressed:
            self.simulation.update_pointer(True, *self.pointer_pos, now)
