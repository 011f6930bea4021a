# history_indexer/cli/__main__.py

"""
History Indexer CLI

Usage: history-indexer [command] [options]
       python -m history_indexer.cli [command] [options]
"""

import atexit

import click

from .context import CLIContext
from ..core.logging import IndexerLogger

cli_context = CLIContext()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Pair liquidity history indexer

    Imports pair contract logs from the chain middleware, repairs the history
    after chain reorganizations and renders graphs and listings from it.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['cli_context'] = cli_context

    if verbose:
        IndexerLogger.reset()
        IndexerLogger.configure(log_level="DEBUG", console_enabled=True, structured_format=True)


from .commands.db import db
from .commands.tasks import tasks
from .commands.graph import graph
from .commands.history import history
from .commands.serve import serve

cli.add_command(db)
cli.add_command(tasks)
cli.add_command(graph)
cli.add_command(history)
cli.add_command(serve)


def cleanup():
    """Shut down database connections"""
    cli_context.shutdown()


atexit.register(cleanup)


if __name__ == '__main__':
    cli()
