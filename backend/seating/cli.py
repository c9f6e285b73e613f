# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/seating/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Seating charts:
# - python -m flask charts list [--department Eng] [--all]
#   List charts (use --all to include soft-deleted ones).
# - python -m flask charts prune-versions --keep 50 [--chart-id chart-...]
#   Delete the oldest snapshots beyond the newest N per chart.
# - python -m flask charts clear-cache --yes
#   Drop every entry from the configured cache backend.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services.chart_repository import ChartRepository
from .services.version_store import VersionStore


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('charts')
def charts_group():
    """Seating chart inspection and maintenance."""


@charts_group.command('list')
@click.option('--department', help='Filter by department')
@click.option('--all', 'include_inactive', is_flag=True, help='Include soft-deleted charts')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_charts(department, include_inactive, limit):
    """List seating charts, most recently updated first."""
    repository = ChartRepository()
    versions = VersionStore()
    charts = repository.list(
        department=department,
        active=None if include_inactive else True,
        page=1,
        limit=limit,
    )

    if not charts:
        click.echo("No seating charts found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<45} {'Department':<15} {'Name':<20} {'Seats':<6} {'Rev':<5} {'Versions':<9} {'Active'}")
    click.echo("="*110)

    for chart in charts:
        seat_count = len(chart.layout.get("seats", []))
        active_str = "Yes" if chart.is_active else "No"
        click.echo(
            f"{chart.id:<45} {chart.department[:15]:<15} {chart.name[:20]:<20} "
            f"{seat_count:<6} {chart.revision:<5} {versions.count(chart.id):<9} {active_str}"
        )

    click.echo("="*110 + "\n")


@charts_group.command('prune-versions')
@click.option('--keep', type=int, required=True, help='Snapshots to keep per chart')
@click.option('--chart-id', help='Only prune this chart')
@with_appcontext
def prune_versions(keep, chart_id):
    """Delete old version snapshots beyond the newest --keep per chart."""
    if keep < 1:
        raise click.BadParameter("must be >= 1", param_hint="--keep")

    versions = VersionStore()
    if chart_id:
        deleted = versions.prune(chart_id, keep=keep)
    else:
        deleted = versions.prune_all(keep=keep)
    click.echo(f"Deleted {deleted} version snapshots (kept newest {keep} per chart).")


@charts_group.command('clear-cache')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_cache(yes):
    """Drop all cached charts and chart listings."""
    if not yes:
        click.confirm("WARN This clears the whole cache backend. Continue?", abort=True)
    current_app.extensions["seating_cache"].clear()
    click.echo("PASS Cache cleared.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(charts_group)
