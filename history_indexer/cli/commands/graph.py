# history_indexer/cli/commands/graph.py

"""
Graph CLI Commands
"""

import msgspec
import click

from ...core.errors import HistoryIndexerError
from ...services import GraphService
from ...types import GraphType, TimeFrame


@click.group()
def graph():
    """Render graph series from the liquidity history"""
    pass


@graph.command('show')
@click.option('--type', 'graph_type', required=True,
              type=click.Choice([t.value for t in GraphType]),
              help='Graph type')
@click.option('--frame', 'time_frame', default=TimeFrame.MAX.value, show_default=True,
              type=click.Choice([f.value for f in TimeFrame]),
              help='Time frame')
@click.option('--token', 'token_address', help='Token address scope')
@click.option('--pair', 'pair_address', help='Pair address scope')
@click.pass_context
def show(ctx, graph_type, time_frame, token_address, pair_address):
    """Print a graph as JSON

    Examples:
        graph show --type TVL --frame 1W
        graph show --type Price --frame 1D --token ct_...
    """
    cli_context = ctx.obj['cli_context']

    try:
        result = cli_context.get(GraphService).get_graph(
            GraphType(graph_type),
            TimeFrame(time_frame),
            token_address=token_address,
            pair_address=pair_address,
        )
    except HistoryIndexerError as e:
        raise click.ClickException(str(e))

    click.echo(msgspec.json.encode(result).decode())
