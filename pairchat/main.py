"""
PairChat Server - Main Application Entry Point

Sets up logging from configuration, builds the FastAPI application and, when
run as a script, serves it with uvicorn.
"""

import uvicorn

from .app.factory import create_app
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging

# Early logging setup - must happen before any logger creation
config = get_config()
setup_enhanced_logging(config.to_legacy_dict())

logger = get_logger(__name__)
logger.info("Logging setup completed", environment=config.logging.environment)

app = create_app(config)


def main() -> None:
    """Run the server with uvicorn on the configured host and port."""
    logger.info("Starting uvicorn", host=config.server.host, port=config.server.port)
    uvicorn.run(
        "pairchat.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
        access_log=True,
        use_colors=False,  # structlog renders its own output
    )


if __name__ == "__main__":
    main()
