"""
Command-line interface for restroom-tracker.

Provides commands to run the API server, initialize the database,
provision toilets and run diagnostic checks.

Usage:
    restroom-tracker init-db                     # Create tables
    restroom-tracker add-toilet "Floor 2 West"   # Provision a toilet
    restroom-tracker list-toilets                # Show active toilets
    restroom-tracker stats                       # Print the admin report
    restroom-tracker serve                       # Run the API server
    restroom-tracker health                      # Check service health
"""

import asyncio
import json
import sys

import click

from src.config.settings import get_settings
from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Restroom Tracker - facility cleanliness ratings and cleaning workflow."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()

    settings = get_settings()
    if settings.tracing_enabled:
        from src.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.storage.database import Database
    from src.storage.schema import create_all_tables

    async def run():
        db = Database()
        await db.connect()

        try:
            await create_all_tables(db)
            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command("add-toilet")
@click.argument("name")
@click.option("--location", default="", help="Where the toilet is, e.g. 'Building A, floor 2'")
def add_toilet(name: str, location: str) -> None:
    """Provision a new toilet."""
    from src.storage.database import Database
    from src.toilets.repository import ToiletRepository
    from src.toilets.schemas import Toilet

    try:
        toilet = Toilet(name=name, location=location)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAME") from None

    async def run():
        db = Database()
        await db.connect()

        try:
            created = await ToiletRepository(db).create(toilet)
            click.echo(f"Created toilet {created.id}: {created.name}")
        finally:
            await db.close()

    asyncio.run(run())


@main.command("deactivate-toilet")
@click.argument("toilet_id", type=int)
def deactivate_toilet(toilet_id: int) -> None:
    """Take a toilet out of service. Its history is kept."""
    from src.storage.database import Database
    from src.toilets.repository import ToiletRepository

    async def run():
        db = Database()
        await db.connect()

        try:
            updated = await ToiletRepository(db).set_active(toilet_id, False)
        finally:
            await db.close()

        if not updated:
            click.echo(click.style(f"Toilet {toilet_id} not found", fg="red"))
            sys.exit(1)
        click.echo(f"Toilet {toilet_id} deactivated")

    asyncio.run(run())


@main.command("list-toilets")
def list_toilets() -> None:
    """List active toilets with their current status."""
    from src.cleaning.repository import TaskRepository
    from src.ratings.repository import RatingRepository
    from src.status.aggregator import StatusAggregator
    from src.storage.database import Database
    from src.toilets.repository import ToiletRepository

    async def run():
        db = Database()
        await db.connect()

        try:
            aggregator = StatusAggregator(
                toilets=ToiletRepository(db),
                ratings=RatingRepository(db),
                tasks=TaskRepository(db),
            )
            statuses = await aggregator.get_all_statuses()
        finally:
            await db.close()

        if not statuses:
            click.echo("No active toilets")
            return

        click.echo(f"\n{'ID':>4}  {'Name':<24} {'Avg':>5} {'Ratings':>8}  Status")
        click.echo("-" * 60)
        for status in statuses:
            average = f"{status.average_rating:.2f}" if status.average_rating is not None else "-"
            if status.cleaning_task is not None:
                label = status.cleaning_task.status.value
            elif status.has_problems:
                label = f"{status.problem_count} problem(s)"
            else:
                label = "ok"
            color = "red" if status.has_problems else "green"
            click.echo(
                f"{status.toilet.id:>4}  {status.toilet.name:<24} {average:>5} "
                f"{status.total_ratings:>8}  " + click.style(label, fg=color)
            )

    asyncio.run(run())


@main.command()
def stats() -> None:
    """Print system and per-cleaner statistics as JSON."""
    from src.cleaning.repository import TaskRepository
    from src.ratings.repository import RatingRepository
    from src.stats.service import CleaningStatsService
    from src.status.aggregator import StatusAggregator
    from src.storage.database import Database
    from src.toilets.repository import ToiletRepository

    async def run():
        db = Database()
        await db.connect()

        try:
            toilets = ToiletRepository(db)
            ratings = RatingRepository(db)
            tasks = TaskRepository(db)
            service = CleaningStatsService(
                toilets=toilets,
                ratings=ratings,
                tasks=tasks,
                aggregator=StatusAggregator(toilets=toilets, ratings=ratings, tasks=tasks),
            )
            report = await service.get_report()
        finally:
            await db.close()

        click.echo(json.dumps(report, indent=2, default=str))

    asyncio.run(run())


# Tables created by init-db; a reachable database without them cannot serve.
_REQUIRED_TABLES = ("toilets", "ratings", "cleaning_tasks")


@main.command()
def health() -> None:
    """Check database connectivity and that init-db has run."""
    import structlog
    logger = structlog.get_logger()

    async def check() -> dict[str, bool]:
        from src.storage.database import Database

        results = {"postgres": False, "schema": False}
        db = Database()
        try:
            await db.connect()
            results["postgres"] = await db.health_check()
            if results["postgres"]:
                missing = [
                    table
                    for table in _REQUIRED_TABLES
                    if not await db.fetchval("SELECT to_regclass($1) IS NOT NULL", table)
                ]
                results["schema"] = not missing
                if missing:
                    logger.warning("Tables missing, run init-db", tables=missing)
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))
        finally:
            await db.close()
        return results

    results = asyncio.run(check())
    results["auth_tokens_configured"] = bool(get_settings().valid_tokens)

    click.echo("\nrestroom-tracker health")
    click.echo("=" * 40)
    for name, ok in results.items():
        mark = "OK  " if ok else "FAIL"
        click.echo(click.style(f"  [{mark}] {name}: {ok}", fg="green" if ok else "red"))
    click.echo("=" * 40)

    if results["postgres"] and results["schema"]:
        click.echo(click.style("Ready to serve.", fg="green"))
        sys.exit(0)
    click.echo(click.style("Not ready.", fg="red"))
    sys.exit(1)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the restroom tracker API server."""
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
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
