"""``ctrain serve`` — run the HTTP service."""

from __future__ import annotations

import click

from ctrain.cli_commands._common import load_config


@click.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="Service YAML file.")
@click.option("--host", default=None, help="Override the bind address.")
@click.option("--port", type=int, default=None, help="Override the bind port.")
def serve(config_path: str | None, host: str | None, port: int | None) -> None:
    """Serve the lesson API until interrupted."""
    import uvicorn

    from ctrain.server.app import create_app
    from ctrain.utils.logging import configure_logging
    from ctrain.utils.telemetry import configure_telemetry

    config = load_config(config_path)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    configure_logging(config.logging.level, json_output=config.logging.json_output)
    if config.telemetry.enabled:
        configure_telemetry(
            export_to_console=config.telemetry.export_to_console,
            otlp_endpoint=config.telemetry.otlp_endpoint,
        )

    app = create_app(config)
    # log_config=None keeps the handlers installed above.
    uvicorn.run(app, host=config.host, port=config.port, log_config=None, access_log=False)
