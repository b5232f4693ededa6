"""Entry point for the Inkthread discussion server."""

from inkthread.app import App
from inkthread.config import Config
from inkthread.logging import setup_logging
from inkthread.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
