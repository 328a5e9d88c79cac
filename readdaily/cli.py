import click
from flask import Blueprint

from readdaily.services import content_automation, maintenance
from readdaily.services.reading_history import utc_today

bp = Blueprint('readdaily_cli', __name__, cli_group='readdaily')


@bp.cli.command('seed')
@click.argument('path', required=False, type=click.Path(exists=True, dir_okay=False))
def seed_command(path):
    """Load categories (and articles) from PATH, default the built-in categories."""
    data = maintenance.load_seed_file(path or maintenance.DEFAULT_CATEGORIES_PATH)
    added = maintenance.seed(data)
    click.echo(f"Seeded {added['categories']} categories and {added['articles']} articles")


@bp.cli.command('prune-reads')
def prune_reads_command():
    """Drop read history that points at deleted articles."""
    result = maintenance.prune_read_history()
    click.echo(
        f"Cleaned {result['users_cleaned']} users, "
        f"removed {result['orphaned_reads']} orphaned reads"
    )


@bp.cli.command('run-automation')
def run_automation_command():
    """Import today's YouTube articles once."""
    saved = content_automation.process_daily_content(utc_today())
    click.echo(f'Content automation completed: {len(saved)} articles saved')
