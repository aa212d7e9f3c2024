"""
Command-line interface for database setup, imports and exports.
Usage examples:
  match-narrator init-db
  match-narrator create-user --email admin@example.com --name Admin --role SUPERADMIN
  match-narrator import-manual data/liga-2025.json
  match-narrator export-teams --output data/teams.json --season-file data/liga-2025.json
  match-narrator serve --port 8000
"""

import json
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from matchnarrator.common.logging_utils import configure_logging
from matchnarrator.core.config import Settings, settings
from matchnarrator.database.manager import DatabaseManager
from matchnarrator.domain.errors import NarratorError
from matchnarrator.domain.models import UserRole


def _open_db(cfg: Settings) -> DatabaseManager:
    db = DatabaseManager(settings=cfg)
    db.initialize()
    return db


@click.group()
@click.option("--log-level", default=None, help="Overrides LOG_LEVEL for this run.")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]):
    """Match Narrator administration"""
    configure_logging("cli", level=log_level or settings.log_level, log_format=settings.log_format)
    ctx.obj = ctx.obj or settings


@cli.command(name="init-db")
@click.pass_obj
def init_db(cfg: Settings):
    """Create all tables"""
    db = _open_db(cfg)
    try:
        db.create_tables()
    finally:
        db.close()
    click.echo("Database tables created")


@cli.command(name="drop-db")
@click.confirmation_option(prompt="Drop all tables?")
@click.pass_obj
def drop_db(cfg: Settings):
    """Drop all tables"""
    db = _open_db(cfg)
    try:
        db.drop_tables()
    finally:
        db.close()
    click.echo("Database tables dropped")


@cli.command(name="create-user")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.NARRADOR.value,
    show_default=True,
)
@click.pass_obj
def create_user(cfg: Settings, email: str, name: str, password: str, role: str):
    """Create a user account"""
    from matchnarrator.database.services import users as user_service

    db = _open_db(cfg)
    try:
        with db.session_scope() as session:
            user = user_service.create_user(
                session, email=email, password=password, name=name, role=UserRole(role)
            )
            click.echo(f"Created {user.role.value} user {user.email} (id={user.id})")
    except NarratorError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.pass_obj
def seed(cfg: Settings):
    """Create demo users, a competition, two squads and a fixture"""
    from matchnarrator.apps.seed import seed_demo_data

    db = _open_db(cfg)
    try:
        db.create_tables()
        with db.session_scope() as session:
            result = seed_demo_data(session)
    finally:
        db.close()
    click.echo(json.dumps(result, indent=2))


@cli.command(name="import-manual")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def import_manual(cfg: Settings, file: Path):
    """Import a manual season JSON document"""
    from matchnarrator.api.models import ManualSeasonRequest
    from matchnarrator.database.services import imports as import_service

    try:
        document = ManualSeasonRequest.model_validate(json.loads(file.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        raise click.ClickException(f"Invalid season file {file}: {e}")

    db = _open_db(cfg)
    try:
        with db.session_scope() as session:
            result = import_service.import_manual_season(session, document.to_data())
    except NarratorError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()
    click.echo(json.dumps(result["summary"], indent=2))


@cli.command(name="export-teams")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("data/teams.json"),
    show_default=True,
)
@click.option(
    "--season-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Manual season JSON whose teams are replaced in a .teams-updated.json copy.",
)
@click.pass_obj
def export_teams(cfg: Settings, output: Path, season_file: Optional[Path]):
    """Dump all teams to JSON"""
    from matchnarrator.database.services import export as export_service

    db = _open_db(cfg)
    try:
        with db.session_scope() as session:
            result = export_service.export_teams(session, output, season_file)
    finally:
        db.close()
    click.echo(f"Exported {result['teams']} teams to {result['output']}")
    if result["season_output"]:
        click.echo(f"Updated season file written to {result['season_output']}")


@cli.command()
@click.option("--host", default=None)
@click.option("--port", type=int, default=None)
@click.option("--reload", is_flag=True, default=False)
@click.pass_obj
def serve(cfg: Settings, host: Optional[str], port: Optional[int], reload: bool):
    """Run the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "matchnarrator.api.app:app",
        host=host or cfg.api_host,
        port=port or cfg.api_port,
        reload=reload,
        log_level=cfg.log_level.lower(),
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
