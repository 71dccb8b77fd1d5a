"""Application entry point for the MoveCar server."""

from movecar.app import App
from movecar.config import Config
from movecar.logging import setup_logging
from movecar.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
