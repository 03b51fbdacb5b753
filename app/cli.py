"""CLI utilities."""

import json
import os

import click

from app.config import settings
from app.core.exceptions import ReportServiceError
from app.core.report_store import ReportStore
from app.core.reporting import GenerationRequest, ReportGenerator
from app.core.templating import TemplateRenderer, build_starter_template
from app.database import Database
from app.logging_config import configure_logging


def _database() -> Database:
    return Database(
        settings.database_url,
        connect_retries=settings.db_connect_retries,
        connect_backoff_max=settings.db_connect_backoff_max,
    )


@click.group()
def cli():
    """Excel to Word report service CLI."""
    configure_logging(settings.log_level)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST setting)")
@click.option("--port", default=None, type=int, help="Port (default: PORT setting)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "app.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command("init-db")
def init_db():
    """Connect to the database and create missing tables."""
    database = _database()
    database.connect()
    database.create_all()
    click.echo("Database tables are ready")


@cli.command("init-template")
@click.argument("path", required=False)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_template(path: str, force: bool):
    """Write a starter .docx template."""
    path = path or settings.template_path
    if os.path.exists(path) and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    with open(path, "wb") as f:
        f.write(build_starter_template())
    click.echo(f"Template written to {path}")


@cli.command("inspect-template")
@click.argument("path", required=False)
def inspect_template(path: str):
    """Show the tags and text preview of a template."""
    path = path or settings.template_path
    if not os.path.isfile(path):
        raise click.ClickException(f"Template file not found: {path}")
    with open(path, "rb") as f:
        content = f.read()

    try:
        result = TemplateRenderer().inspect(content)
    except ReportServiceError as e:
        details = getattr(e, "details", [])
        for detail in details:
            click.echo(f"  {detail['type']}: {detail['tag']} - {detail['issue']}", err=True)
        raise click.ClickException(str(e))

    click.echo(f"Tags ({result.tag_count}): {', '.join(result.tags)}")
    click.echo("Preview:")
    click.echo(result.preview)


@cli.command()
@click.option("--employee", "employee_name", required=True, help="Employee name")
@click.option("--month", required=True, help="Month label, e.g. March")
@click.option("--year", default=None, help="Year (default: current year)")
@click.option("--generated-date", default="", help="Free-form generation date")
@click.option("--data", "data_file", default=None, type=click.Path(exists=True), help="JSON file with template data")
def generate(employee_name: str, month: str, year: str, generated_date: str, data_file: str):
    """Generate a report without going through the HTTP API."""
    data = {}
    if data_file:
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

    database = _database()
    database.connect()
    database.create_all()
    with database.session() as db:
        generator = ReportGenerator(
            store=ReportStore(db),
            renderer=TemplateRenderer(),
            template_path=settings.template_path,
            upload_dir=settings.upload_dir,
        )
        try:
            result = generator.generate_report(
                GenerationRequest(
                    employee_name=employee_name,
                    month=month,
                    year=year,
                    generated_date=generated_date,
                    data=data,
                )
            )
        except ReportServiceError as e:
            raise click.ClickException(str(e))

    click.echo(f"Report {result.report.id} saved to {result.report.report_file} ({result.report.file_size} bytes)")


@cli.command("seed-chats")
@click.argument("yaml_file", type=click.Path(exists=True))
def seed_chats_command(yaml_file: str):
    """Load chat records from a YAML file."""
    from app.seed import seed_chats

    database = _database()
    database.connect()
    database.create_all()
    added = seed_chats(yaml_file, database)
    click.echo(f"Added {added} chats")


if __name__ == "__main__":
    cli()
