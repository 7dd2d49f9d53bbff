import logging

try:
    import os
    from dotenv import load_dotenv, find_dotenv

    env_file = os.environ.get("ENV_FILE", ".env")
    path = find_dotenv(filename=env_file, raise_error_if_not_found=True)
    logging.getLogger(__name__).info(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)

except IOError:
    # No file to set environment variables
    pass

# Settings are read at import time, so handlers come after the .env file
from dynakube.handlers import (  # noqa: E402
    dynakube,
    probes,
)

__all__ = [
    "probes",
    "dynakube",
]

__version__ = "0.1.0"
