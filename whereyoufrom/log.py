import logging

LOGGER_NAME = "whereyoufrom"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def console_level(verbose=False, silent=False):
    """
    Map the command line flags to a handler level.

    Silent keeps only failures, verbose adds progress lines.
    """
    if silent:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.INFO


def setup_logging(verbose=False, silent=False, stream=None):
    log = logging.getLogger(LOGGER_NAME)
    log.propagate = False
    log.handlers.clear()
    log.setLevel(logging.DEBUG)  # handlers gate output

    ch = logging.StreamHandler(stream)
    ch.setLevel(console_level(verbose, silent))
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    log.addHandler(ch)
    return log


def get_logger():
    return logging.getLogger(LOGGER_NAME)
