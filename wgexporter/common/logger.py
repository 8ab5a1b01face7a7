import logging
import sys


ROOT_LOGGER_NAME = "wgexporter"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str):
    return logging.getLogger("{}.{}".format(ROOT_LOGGER_NAME, name))


def setup_logging(verbose: bool = False):
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    # calling twice (tests, reloads) must not duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return root
