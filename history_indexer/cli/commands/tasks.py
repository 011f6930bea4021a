# history_indexer/cli/commands/tasks.py

"""
Task CLI Commands

One-shot runs of the importer and validator, and the periodic runner.
"""

import msgspec
import click

from ...tasks import LiquidityHistoryImporter, LiquidityHistoryValidator, TaskRunner


@click.group()
def tasks():
    """Run importer and validator jobs"""
    pass


@tasks.command('import')
@click.pass_context
def import_history(ctx):
    """Import new pair logs once"""
    cli_context = ctx.obj['cli_context']

    try:
        summary = cli_context.get(LiquidityHistoryImporter).import_history()
    except Exception as e:
        raise click.ClickException(f"Import failed: {e}")

    click.echo(msgspec.json.encode(summary).decode())


@tasks.command('validate')
@click.pass_context
def validate(ctx):
    """Check recent history against the canonical chain once"""
    cli_context = ctx.obj['cli_context']

    try:
        deleted = cli_context.get(LiquidityHistoryValidator).validate()
    except Exception as e:
        raise click.ClickException(f"Validation failed: {e}")

    click.echo(f"Deleted {deleted} entries")


@tasks.command('run')
@click.option('--poll-interval', default=1.0, show_default=True, help='Scheduler tick in seconds')
@click.pass_context
def run(ctx, poll_interval):
    """Run importer and validator on their intervals until interrupted"""
    cli_context = ctx.obj['cli_context']
    runner = cli_context.get(TaskRunner)

    try:
        runner.run_forever(poll_interval=poll_interval)
    except KeyboardInterrupt:
        runner.stop()
        click.echo("Stopped")
