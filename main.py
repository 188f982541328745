# main.py

import pygame
import constants
import json
import logging
import logger_setup
import numpy as np
from audio_mapper import AudioMapper
from input_handler import InputHandler
from simulation import Simulation

# Get the application's dedicated logger
logger = logging.getLogger("gravity_sandbox")

import cProfile, pstats

def seconds_clock():
    """Frame-clock time in seconds, shared by the well tracker and audio mapper."""
    return pygame.time.get_ticks() / 1000.0

def run_simulation_loop(simulation, input_handler, audio_mapper, screen, clock, log_interval, max_ticks=None):
    """
    The main frame loop: input, one simulation tick, drawing.
    Runs until the window closes or max_ticks frames have elapsed.
    """
    running = True
    tick = 0
    trail_surface = pygame.Surface(screen.get_size(), pygame.SRCALPHA)

    while running and (max_ticks is None or tick < max_ticks):
        for event in pygame.event.get():
            if not input_handler.handle_event(event):
                running = False
            elif event.type == pygame.VIDEORESIZE:
                screen = pygame.display.get_surface()
                trail_surface = pygame.Surface(screen.get_size(), pygame.SRCALPHA)

        # --- Wells & Physics Update ---
        input_handler.poll()
        simulation.tick()
        if audio_mapper is not None:
            audio_mapper.update()

        # --- Logging (throttled) ---
        if tick % log_interval == 0:
            particles = simulation.particles
            wells = simulation.wells()
            logger.debug(
                f"Tick={tick}, "
                f"Particles={len(particles)}, "
                f"Wells={len(wells)}, "
                f"MaxStrength={max((w.strength for w in wells.values()), default=0.0):.2f}, "
                f"MeanSpeed={particles.get_mean_speed():.3f}, "
                f"MeanHomeDistance={particles.get_mean_home_distance():.1f}"
            )

        # --- Drawing ---
        trail_surface.fill(constants.TRAIL_EFFECT_COLOR)
        screen.blit(trail_surface, (0, 0))
        simulation.particles.draw(screen)
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

def main():
    """
    Main function to initialize and run the gravity sandbox.
    With profiling enabled in config.json, runs a fixed number of ticks
    under cProfile and prints the top functions.
    """
    # --- Setup ---
    logger_setup.setup_logging()

    with open('config.json', 'r') as f:
        config = json.load(f)
    sim_config = config['simulation']
    audio_config = config.get('audio', {})
    profiling_config = config.get('profiling', {})

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(constants.TITLE)
    pygame.mouse.set_visible(False)
    pointer_lock = sim_config.get('pointer_lock', False)
    if pointer_lock:
        pygame.event.set_grab(True)
    clock = pygame.time.Clock()
    screen.fill(constants.BLACK)

    bounds = (constants.WIDTH, constants.HEIGHT)
    audio_mapper = None
    listeners = []
    if audio_config.get('enabled', True):
        audio_mapper = AudioMapper(bounds, audio_config.get('fade_seconds', constants.AUDIO_FADE_SECONDS), clock=seconds_clock)
        listeners.append(audio_mapper)

    simulation = Simulation(sim_config, rng, bounds, clock=seconds_clock, listeners=listeners)
    input_handler = InputHandler(
        simulation,
        clock=seconds_clock,
        pointer_lock=pointer_lock,
        on_resize=audio_mapper.resize if audio_mapper is not None else None,
    )
    log_interval = max(1, int(sim_config.get('log_interval_ticks', 300)))

    if profiling_config.get('enabled', False):
        profiler = cProfile.Profile()
        profiler.enable()
        run_simulation_loop(simulation, input_handler, audio_mapper, screen, clock, log_interval, max_ticks=profiling_config.get('ticks', 3000))
        profiler.disable()
        logger.info("Profiling complete. Printing stats...")
        stats = pstats.Stats(profiler).sort_stats('cumtime')
        stats.print_stats(20) # Print the top 20 time-consuming functions
    else:
        run_simulation_loop(simulation, input_handler, audio_mapper, screen, clock, log_interval)

    logger.info("Application shutting down.")
    pygame.quit()

if __name__ == "__main__":
    main()
