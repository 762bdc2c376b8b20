"""
Employee API entry point
Serves the employee proxy with uvicorn
"""

import sys

import uvicorn
from loguru import logger

from employee_api.server import create_app
from employee_api.settings import global_settings


def main() -> None:
    """Main function"""
    logger.remove()
    logger.add(sys.stderr, level=global_settings.log_level.upper())

    logger.info("Starting Employee API...")
    app = create_app()

    try:
        uvicorn.run(app, host=global_settings.host, port=global_settings.port)
    finally:
        logger.info("Employee API stopped")


if __name__ == "__main__":
    main()
