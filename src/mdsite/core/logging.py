"""Logging setup for the CLI"""

import logging
import sys


def setup_logging(log_level: str = "INFO") -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # Quieten down noisy libraries
    logging.getLogger("markdown_it").setLevel(logging.WARNING)
