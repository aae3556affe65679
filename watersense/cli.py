"""
Command-line interface for watersense.

Provides commands to run the API and the dispatch worker, initialize
the database, recover stale claims, and run diagnostic checks.

Usage:
    watersense serve      # Run the HTTP API
    watersense dispatch   # Run the SMS dispatch worker
    watersense init-db    # Initialize database
    watersense sweep      # Recover stale claims once
    watersense deliveries # List recent deliveries
    watersense health     # Check service health
"""

import asyncio
import signal
import sys

import click

from watersense.config.settings import get_settings
from watersense.observability.logging import setup_logging
from watersense.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """WaterSense - flood early-warning backend."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    # Start metrics server on separate port
    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "watersense.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
@click.option("--gateway-url", default=None, help="SMS gateway endpoint (overrides DELIVERY_GATEWAY_URL)")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def dispatch(gateway_url: str | None, metrics: bool, metrics_port: int | None) -> None:
    """Run the SMS dispatch worker."""
    from watersense.alerts.channels import SmsGatewayChannel
    from watersense.alerts.queue import DeliveryConfig, DeliveryQueue
    from watersense.alerts.repository import NotificationRepository
    from watersense.alerts.worker import DeliveryWorker
    from watersense.storage.database import Database

    settings = get_settings()
    config = DeliveryConfig()
    url = gateway_url or config.gateway_url
    if not url:
        click.echo(
            click.style("No SMS gateway configured (set DELIVERY_GATEWAY_URL)", fg="red"),
            err=True,
        )
        sys.exit(1)

    async def run():
        db = Database()
        await db.connect()

        queue = DeliveryQueue(
            NotificationRepository(db),
            config=config,
            sms_disabled=settings.sms_disabled,
        )
        channel = SmsGatewayChannel(
            url,
            token=config.gateway_token,
            timeout=config.gateway_timeout_seconds,
        )
        worker = DeliveryWorker(queue, channel, config=config)

        if metrics:
            get_metrics().start_server(port=metrics_port)

        # Handle shutdown signals
        loop = asyncio.get_event_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(worker.stop()))

        try:
            await worker.start()
        finally:
            await db.close()

    asyncio.run(run())


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from watersense.storage.database import Database
    from watersense.storage.schema import create_tables

    async def run():
        db = Database()
        await db.connect()

        await create_tables(db)

        click.echo("Database initialized successfully")

        await db.close()

    asyncio.run(run())


@main.command()
@click.option("--older-than", default=None, type=float, help="Claim age in seconds (default DELIVERY_CLAIM_TIMEOUT_SECONDS)")
def sweep(older_than: float | None) -> None:
    """Recover deliveries stuck in the claimed state."""
    from watersense.alerts.queue import DeliveryConfig, DeliveryQueue
    from watersense.alerts.repository import NotificationRepository
    from watersense.storage.database import Database

    config = DeliveryConfig()
    if older_than is not None:
        config = config.model_copy(update={"claim_timeout_seconds": older_than})

    async def run():
        db = Database()
        await db.connect()
        try:
            queue = DeliveryQueue(NotificationRepository(db), config=config)
            result = await queue.sweep_stale_claims()
        finally:
            await db.close()

        click.echo(f"Released: {result.released}  Failed: {result.failed}")
        for delivery_id in result.failed_ids:
            click.echo(f"  failed: {delivery_id}")

    asyncio.run(run())


@main.command()
@click.option(
    "--status", "status_name", default=None,
    type=click.Choice(["pending", "sent", "claimed", "failed"]),
    help="Only deliveries in this state",
)
@click.option(
    "--severity", default=None,
    type=click.Choice(["CAUTION", "WARNING", "DANGER", "EMERGENCY"], case_sensitive=False),
    help="Only deliveries of this tier",
)
@click.option("--limit", default=20, type=click.IntRange(1, 500), help="Rows to show")
def deliveries(status_name: str | None, severity: str | None, limit: int) -> None:
    """List recent deliveries, newest first."""
    from watersense.alerts.repository import NotificationRepository
    from watersense.alerts.schemas import DeliveryStatus, Severity
    from watersense.storage.database import Database

    delivery_status = DeliveryStatus[status_name.upper()] if status_name else None
    tier = Severity(severity.upper()) if severity else None

    async def run():
        db = Database()
        await db.connect()
        try:
            rows = await NotificationRepository(db).get_recent(
                delivery_status=delivery_status, severity=tier, limit=limit,
            )
        finally:
            await db.close()

        if not rows:
            click.echo("No deliveries found")
            return
        for row in rows:
            line = (
                f"{row.id:>6}  {row.delivery_status.name:<8} {row.severity.value:<9} "
                f"subscriber={row.subscriber_id} attempts={row.attempt_count}"
            )
            if row.error_message:
                line += f"  error={row.error_message}"
            click.echo(line)

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of all dependencies."""
    import structlog
    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        # Check PostgreSQL
        try:
            from watersense.storage.database import Database
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        # Check InfluxDB
        try:
            from watersense.timeseries.store import WaterLevelStore
            async with WaterLevelStore() as store:
                results["influxdb"] = await store.health_check()
        except Exception as e:
            results["influxdb"] = False
            logger.error("InfluxDB health check failed", error=str(e))

        settings = get_settings()
        results["influx_configured"] = settings.influx_configured
        results["device_key_configured"] = settings.device_api_key is not None
        results["sms_enabled"] = not settings.sms_disabled

        # Print results
        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        all_healthy = True
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
            if name == "postgres" and not status:
                all_healthy = False

        click.echo("-" * 40)

        if all_healthy:
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
