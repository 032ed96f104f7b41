"""Web server entry point for the account sessions service"""

import sys

import uvicorn

from accounts.config import load_config
from accounts.exceptions import ConfigError
from accounts.utils.logger import configure_logging, get_logger
from web.app import create_app

logger = get_logger(__name__)


def main() -> None:
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_level, config.log_format, config.log_file)
    app = create_app(config)

    logger.info(
        "Starting server",
        host=config.host,
        port=config.port,
        store=config.store_backend,
        public_base_url=config.base_url,
    )
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
