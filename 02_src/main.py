"""Run the messenger backend under uvicorn."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from messenger.api import create_fastapi_app
from messenger.api.routes import control
from messenger.logging_config import get_logger, setup_logging
from sim import Sim

logger = get_logger(__name__)


def main():
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    setup_logging(os.getenv("LOG_LEVEL"))

    host = os.getenv("API_HOST", "localhost")
    port = int(os.getenv("API_PORT", "8000"))

    # SIM talks to this same server over HTTP
    control.set_sim_instance(Sim(api_url=f"http://{host}:{port}"))

    logger.info("Starting messenger on %s:%d", host, port)
    uvicorn.run(
        create_fastapi_app(),
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
