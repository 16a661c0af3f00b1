"""Entry point for goup."""

import asyncio
import logging
import os
import sys

from .app import Goup
from .config import GoupConfig
from .errors import ConfigError, ProjectError, WatchRegistrationError
from .project import GoToolchain
from .supervisor import StdinRelay


def configure_logging() -> None:
    """Configure logging based on environment."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def main(args: list[str], config: GoupConfig, stdin_relay: StdinRelay) -> int:
    """Load the project and watch it until shut down.

    Returns:
        Process exit status
    """
    logger = logging.getLogger(__name__)

    toolchain = GoToolchain(os.getcwd())
    try:
        project = await toolchain.load_project()
    except ProjectError as e:
        logger.error(f"failed import: {e}")
        return 1

    app = Goup(config, project, toolchain, stdin_relay, args)
    try:
        return await app.run()
    except WatchRegistrationError as e:
        logger.error(str(e))
        return 1


def run() -> None:
    """Run goup, forwarding all arguments to the supervised program."""
    configure_logging()
    logger = logging.getLogger(__name__)

    try:
        config = GoupConfig.from_env()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"using termination signal: {config.term_signal.value}")

    try:
        stdin_relay = StdinRelay.capture()
    except OSError as e:
        logger.error(f"failed to read standard input: {e}")
        sys.exit(1)

    try:
        code = asyncio.run(main(sys.argv[1:], config, stdin_relay))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
