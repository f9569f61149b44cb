"""Entry point: python -m fst_fantasy"""

import os

from fst_fantasy.logging_config import setup_logging

setup_logging()

from fst_fantasy.api import EXTENSION_KEY, create_app
from fst_fantasy.config import server_cfg

app = create_app()

if os.environ.get("FST_SCHEDULER") == "1":
    from fst_fantasy.contest.scheduler import start_scheduler

    start_scheduler(app.extensions[EXTENSION_KEY], server_cfg.tick_interval)

app.run(host=server_cfg.host, port=server_cfg.port, debug=False, threaded=True)
