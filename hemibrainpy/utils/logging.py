"""A print-based logger for long-running archive updates.

Skeletonising and NBLASTing thousands of neurons is mostly done from a
notebook or an ssh session, where standard Python logging is easy to lose.
This logger prints to stdout with a timestamped header, and can mirror
every message to an open log file.

Usage:
    from hemibrainpy.utils import get_logger
    LOG = get_logger("nblast.update")
    LOG.info("NBLASTing %d neurons", 120)
"""

import sys
from datetime import datetime

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def get_logger(name, out=None, level="DEBUG"):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, shown in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).
    level : str
        Messages below this level are dropped.

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods.
    """
    prefix = f"hemibrainpy:{name}"
    threshold = LEVELS[level]
    line_length = 72

    def _outputs():
        # sys.stdout is looked up per call so pytest's capsys sees the output
        return [sys.stdout] + ([out] if out else [])

    def log(level, msg, args):
        if LEVELS[level] < threshold:
            return
        now = datetime.now().strftime("%H:%M:%S")
        try:
            text = msg % args
        except TypeError:
            text = msg
        for dest in _outputs():
            print("_" * line_length, file=dest)
            print(f"{prefix} {level} [{now}]", file=dest)
            print(text, file=dest)

    log.debug = lambda msg, *args: log("DEBUG", msg, args)
    log.info = lambda msg, *args: log("INFO", msg, args)
    log.warning = lambda msg, *args: log("WARNING", msg, args)
    log.error = lambda msg, *args: log("ERROR", msg, args)

    return log
