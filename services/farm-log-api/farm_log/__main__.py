"""Run the Farm Log API with uvicorn: ``python -m farm_log``."""

import logging
import os

import uvicorn

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("Starting Farm Log API on port %s", PORT)
    uvicorn.run("farm_log.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
