# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework
and the default physics tunables. The defaults are used whenever the
'simulation' section of config.json does not override a key.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions (initial; the window is resizable)
WIDTH = 1200  # Pixels
HEIGHT = 800  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)

# Window Title
TITLE = "Gravity Sandbox"

# Visual Effects
TRAIL_EFFECT_COLOR = (0, 0, 0, 6) # RGBA. Alpha controls trail length (lower = longer).
PARTICLE_RADIUS = 1.1 # Pixels
PARTICLE_SATURATION = 80 # HSV percent
PARTICLE_VALUE = 90 # HSV percent
PARTICLE_ALPHA = 85 # Percent

# Particle population
DEFAULT_PARTICLE_COUNT = 600
PARTICLE_COUNT_PRESETS = {1: 200, 2: 400, 3: 600, 4: 1000} # Keyboard digit -> count
HUE_RANGE = (180.0, 300.0) # Degrees
INITIAL_SPEED_RANGE = (-0.5, 0.5) # Pixels / tick, per axis
INITIAL_AGE_RANGE = (0, 100) # Ticks

# --- Default physics tunables ---
# Wells
DEFAULT_MAX_WELLS = 6
BASE_STRENGTH = 2.0
DURATION_STRENGTH_RATE = 2.5 # Strength per second of press
MAX_DURATION_STRENGTH = 4.0
PRESSURE_STRENGTH_SCALE = 3.0
POINTER_STRENGTH = 3.0 # Fixed strength of the mouse/pointer well

# Force field
SOFTENING = 400.0 # Pixels^2, added to squared distance
RADIAL_FORCE_SCALE = 150.0
SWIRL_SCALE = 40.0
SWIRL_FACTOR = 0.45

# Idle behaviour
IDLE_NOISE_SCALE = 0.002 # Noise-space units per pixel
IDLE_NOISE_TIME_SCALE = 0.002 # Noise-space units per tick
IDLE_JITTER = 0.02 # Max idle velocity nudge per tick
HOME_SPRING_K = 0.0002
HOME_THRESHOLD_SQ = 0.01 # Pixels^2

# Integration
VELOCITY_DAMPING = 0.995
MAX_COMPONENT_SPEED = 2.0 # Pixels / tick
AXIS_DAMPING_RATIO = 1.6
AXIS_DAMPING_FACTOR = 0.55
AXIS_DAMPING_MIN_SPEED = 0.4 # Pixels / tick

# Noise
NOISE_OCTAVES = 4
NOISE_FALLOFF = 0.5

# Audio mapping
AUDIO_FREQ_RANGE = (120.0, 1200.0) # Hz across the canvas width
AUDIO_FREQ_LIMITS = (80.0, 2000.0) # Hz
AUDIO_Y_MOD_RANGE = (0.8, 1.2) # Multiplier across the canvas height
AUDIO_STRENGTH_RANGE = (0.0, 6.0)
AUDIO_AMP_RANGE = (0.0, 0.6)
AUDIO_MAX_AMP = 0.8
AUDIO_FADE_SECONDS = 0.25
