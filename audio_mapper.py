# audio_mapper.py

import logging
import time
from dataclasses import dataclass

import numpy as np

import constants
from well_tracker import InputId, Well, WellListener

logger = logging.getLogger("gravity_sandbox")


def _map_range(value, in_lo, in_hi, out_lo, out_hi):
    return out_lo + (value - in_lo) * (out_hi - out_lo) / (in_hi - in_lo)


def frequency_for(x: float, y: float, bounds: tuple) -> float:
    """Oscillator frequency (Hz): pitch follows x, y adds a +/-20% bend."""
    width, height = bounds
    base = _map_range(x, 0.0, width, *constants.AUDIO_FREQ_RANGE)
    base = float(np.clip(base, *constants.AUDIO_FREQ_LIMITS))
    y_mod = _map_range(y, 0.0, height, *constants.AUDIO_Y_MOD_RANGE)
    return base * y_mod


def amplitude_for(strength: float) -> float:
    amp = _map_range(strength, *constants.AUDIO_STRENGTH_RANGE, *constants.AUDIO_AMP_RANGE)
    return float(np.clip(amp, 0.0, constants.AUDIO_MAX_AMP))


@dataclass
class Voice:
    frequency: float
    amplitude: float
    releasing: bool = False
    release_at: float = None


class AudioMapper(WellListener):
    """
    Maps wells to oscillator parameters.

    Holds one Voice per well. A removed well keeps its voice while the
    amplitude fades to zero; update() drops voices whose fade has elapsed.
    No sound is produced here: a backend can read `voices` each frame.
    """
    def __init__(self, bounds: tuple, fade_seconds: float = constants.AUDIO_FADE_SECONDS, clock=time.monotonic):
        self.bounds = tuple(bounds)
        self.fade_seconds = float(fade_seconds)
        self.clock = clock
        self.voices = {}

    def resize(self, bounds: tuple):
        self.bounds = tuple(bounds)

    def on_well_updated(self, well_id: InputId, state: Well):
        frequency = frequency_for(state.x, state.y, self.bounds)
        amplitude = amplitude_for(state.strength)
        voice = self.voices.get(well_id)
        if voice is None or voice.releasing:
            logger.debug(f"Voice started for well {well_id}: {frequency:.1f} Hz, amp {amplitude:.2f}")
            self.voices[well_id] = Voice(frequency, amplitude)
            return
        voice.frequency = frequency
        voice.amplitude = amplitude

    def on_well_removed(self, well_id: InputId, last_state: Well):
        voice = self.voices.get(well_id)
        if voice is None or voice.releasing:
            return
        voice.frequency = frequency_for(last_state.x, last_state.y, self.bounds)
        voice.amplitude = 0.0
        voice.releasing = True
        voice.release_at = self.clock() + self.fade_seconds
        logger.debug(f"Voice fading for well {well_id}, release in {self.fade_seconds:.2f}s")

    def update(self, now: float = None) -> list:
        """Drops voices whose fade-out has finished; returns their ids."""
        now = self.clock() if now is None else now
        released = [well_id for well_id, voice in self.voices.items()
                    if voice.releasing and voice.release_at <= now]
        for well_id in released:
            del self.voices[well_id]
        return released
