"""Uvicorn server runner."""

import copy

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from movecar.app import App
from movecar.config import Config
from movecar.web.server import create_fastapi_app


def build_log_config(debug: bool) -> dict:
    """Uvicorn logging with short formats; access lines only in debug."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["loggers"]["uvicorn.access"]["level"] = "INFO" if debug else "WARNING"
    return log_config


def run_server(app: App, config: Config) -> None:
    """Run the app behind Uvicorn.

    Proxy headers are honoured so that owner links built from the request
    origin carry the public scheme when EXTERNAL_URL is unset.
    """
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config.debug),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips=config.forwarded_allow_ips,
    )
