from __future__ import annotations

import logging
import sys
from dotenv import load_dotenv

load_dotenv()

from infrastructure.config import load_app_config

logging.basicConfig(
    level=load_app_config().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from interface.api import app
from interface.cli import main as cli_main

if __name__ == "__main__":
    sys.exit(cli_main())
