import os

from services.common.core.logging_config import configure_queue_logging
from services.common.core.logging_config import setup_logging as common_setup_logging


def setup_logging():
    """
    Load the YAML config and initialize logging.
    Also configure async log delivery to VictoriaLogs when a URL is given.
    """
    config_path = os.getenv("LOG_CONFIG_PATH", "config/relay_log.yaml")
    common_setup_logging(config_path)

    if os.getenv("DISABLE_VICTORIALOGS", "").lower() in ("1", "true", "yes"):
        return

    vl_url = os.getenv("RELAY_VICTORIALOGS_URL") or os.getenv("VICTORIALOGS_URL", "")
    if not vl_url:
        return
    if not vl_url.endswith("/insert/jsonline"):
        vl_url = f"{vl_url.rstrip('/')}/insert/jsonline"
    configure_queue_logging(service_name="repository-relay", vl_url=vl_url)
