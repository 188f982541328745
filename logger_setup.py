# logger_setup.py

import logging
import os
import json

LOGGER_NAME = "gravity_sandbox"

def setup_logging(config_path='config.json', log_root='runs'):
    """
    Sets up logging for the application.

    Reads the logging section of the run configuration, creates a run-specific
    log directory, and configures the dedicated "gravity_sandbox" logger (not
    the root logger) to write to both the console and a log file. Numba and
    pygame keep their own loggers untouched.

    Data Contract:
    - Inputs:
        - config_path (str) - Path to the configuration file.
        - log_root (str) - Directory under which run folders are created.
    - Outputs: The configured logging.Logger.
    - Side Effects:
        - Replaces any handlers previously attached to the "gravity_sandbox" logger.
        - Creates <log_root>/<run_id>/ if needed.
    - Invariants: The config file contains 'run_id' and a 'logging' dictionary
      with 'level' and 'format'.
    """
    with open(config_path, 'r') as f:
        config = json.load(f)

    run_id = config['run_id']
    log_config = config['logging']

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_config['level'])
    logger.propagate = False

    log_dir = os.path.join(log_root, run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'simulation.log')

    formatter = logging.Formatter(log_config['format'])

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    # Called again on restart; drop the old handlers first
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)

    logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    return logger
