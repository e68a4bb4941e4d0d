"""
Logging configuration for the halos package.

The solvers only create module loggers (``logging.getLogger(__name__)``);
handlers are installed once, by the application, through :func:`setup_logging`.

Per-iteration corrector diagnostics are emitted at DEBUG and end up in the
rotating ``halos.log`` file; failed sweep amplitudes are WARNING/ERROR
records and are additionally collected in ``error.log``.

Usage:

    ```python
    from halos.logging_config import setup_logging
    setup_logging(logging.DEBUG, log_dir="logs")
    ```
"""

import logging
import logging.config
from pathlib import Path

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def _rotating_file(path, level):
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'level': level,
        'formatter': 'detailed',
        'filename': str(path),
        'maxBytes': _MAX_BYTES,
        'backupCount': _BACKUPS,
        'encoding': 'utf8',
    }


def setup_logging(default_level=logging.INFO, log_dir="logs", console_level=logging.INFO):
    """
    Install console and file handlers for the package.

    Parameters
    ----------
    default_level : int, optional
        Level of the root logger. Default is logging.INFO.
    log_dir : str or Path, optional
        Directory receiving ``halos.log`` and ``error.log``; created if
        missing. Default is "logs".
    console_level : int, optional
        Threshold of the console handler. Default is logging.INFO, so the
        per-iteration DEBUG records only reach the log file.

    Returns
    -------
    None
        The function configures the logging system directly.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    handlers = ['console', 'file', 'error_file']
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(threadName)s %(name)s '
                          '(%(filename)s:%(lineno)d): %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': console_level,
                'formatter': 'standard',
                'stream': 'ext://sys.stdout',
            },
            'file': _rotating_file(log_path / 'halos.log', 'DEBUG'),
            'error_file': _rotating_file(log_path / 'error.log', 'ERROR'),
        },
        'loggers': {
            '': {  # root logger
                'handlers': handlers,
                'level': default_level,
            },
            # Solver loggers always record DEBUG to the file
            'halos.algorithms.orbits': {
                'handlers': handlers,
                'level': 'DEBUG',
                'propagate': False
            },
            'halos.algorithms.manifolds': {
                'handlers': handlers,
                'level': 'DEBUG',
                'propagate': False
            },
            # numba's compiler is very chatty at DEBUG
            'numba': {
                'level': 'WARNING',
            },
        }
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured in %s", log_path)


if __name__ == "__main__":
    setup_logging()
