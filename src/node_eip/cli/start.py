# src/node_eip/cli/start.py
"""
Start command for the node-eip CLI.

Builds the node and instance directories, then runs the reconciler and,
when enabled, the metrics server side by side in one event loop.
"""

import asyncio
import logging
import signal
import traceback
from typing import Optional

import typer
import uvicorn
from typing_extensions import Annotated

from ..api.app import create_app
from ..core.config import config, parse_interval
from ..core.reconciler import Reconciler
from ..directories.instance_directory import Ec2InstanceDirectory
from ..directories.node_directory import KubernetesNodeDirectory
from ..metrics.exporter import MetricsExporter

logger = logging.getLogger(__name__)

app = typer.Typer(name="start", help="Start the node-eip reconciler.")


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, reconciler: Reconciler) -> None:
    def signal_handler(signum, frame):
        """Handle SIGTERM and SIGINT for graceful shutdown."""
        sig_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
        logger.info(f"Received {sig_name}, stopping at the next suspension point...")
        loop.call_soon_threadsafe(reconciler.stop)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


async def _async_start(node_name: str, metrics_enabled: bool, interval: Optional[str] = None) -> None:
    nodes = KubernetesNodeDirectory(node_name)
    instances = Ec2InstanceDirectory()
    reconciler = Reconciler(nodes, instances, interval=interval)
    _install_signal_handlers(asyncio.get_running_loop(), reconciler)

    server = None
    server_task = None
    try:
        if metrics_enabled:
            exporter = MetricsExporter(instances)
            server = uvicorn.Server(
                uvicorn.Config(
                    create_app(exporter),
                    host=config.METRICS_HOST,
                    port=config.METRICS_PORT,
                    log_level=config.LOG_LEVEL.lower(),
                )
            )
            logger.info(f"metrics: starting server on port {config.METRICS_PORT}")
            server_task = asyncio.create_task(server.serve())
            # uvicorn takes over the signals while serving; when it exits the reconciler follows
            server_task.add_done_callback(lambda _: reconciler.stop())

        await reconciler.run()
    finally:
        if server is not None:
            server.should_exit = True
            await server_task
        await nodes.close()
        await instances.close()


@app.callback(invoke_without_command=True)
def start(
    ctx: typer.Context,
    metrics: Annotated[
        Optional[bool],
        typer.Option("--metrics/--no-metrics", help="Serve the metrics endpoint (default: METRICS_ENABLED)."),
    ] = None,
    interval: Annotated[
        Optional[str],
        typer.Option("--interval", help="Time between cycles (e.g. '10s', '1m'). Overrides RECONCILE_INTERVAL."),
    ] = None,
) -> None:
    """
    Run the reconciliation loop until the node is disabled or the process is terminated.
    """
    if ctx.invoked_subcommand is not None:
        return

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting node-eip...")

    try:
        config.validate_instance()
        node_name = config.require_node_name()
        if interval:
            parse_interval(interval)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)

    if config.DEVELOPMENT:
        logger.warning("development mode")
    logger.info(
        f"config: node={node_name} domain={config.LABEL_DOMAIN} "
        f"interval={interval or config.RECONCILE_INTERVAL} threshold={config.NOT_READY_THRESHOLD}"
    )

    metrics_enabled = config.METRICS_ENABLED if metrics is None else metrics
    try:
        asyncio.run(_async_start(node_name, metrics_enabled, interval))
        logger.info("node-eip stopped.")
    except KeyboardInterrupt:
        logger.info("Shutting down node-eip.")
        raise typer.Exit()
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}")
        logger.error("Failure: %s", traceback.format_exc())
        raise typer.Exit(code=1)
