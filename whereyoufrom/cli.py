import sys

from .args import PROG, ArgumentsError, parse_arguments
from .log import setup_logging
from .server import run_server


def main(argv=None):
    try:
        config = parse_arguments(argv)
    except ArgumentsError as e:
        print(f"{e}\n\nType '{PROG} --help' for a help menu", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # Interrupted while resolving host names, before any socket exists
        return 0

    log = setup_logging(verbose=config.verbose, silent=config.silent)
    try:
        return run_server(config, log)
    except KeyboardInterrupt:
        log.info("Received break signal, shutting down")
        return 0


if __name__ == "__main__":
    sys.exit(main())
