# history_indexer/cli/commands/history.py

"""
History CLI Commands
"""

import msgspec
import click

from ...core.errors import HistoryIndexerError
from ...services import HistoryService
from ...types import HistoryQuery, OrderDirection


@click.group()
def history():
    """Inspect the liquidity history"""
    pass


@history.command('list')
@click.option('--limit', default=100, show_default=True, help='Entries per page, at most 100')
@click.option('--offset', default=0, show_default=True, help='Page offset')
@click.option('--order', default=OrderDirection.ASC.value, show_default=True,
              type=click.Choice([o.value for o in OrderDirection]))
@click.option('--pair', 'pair_address', help='Only entries of this pair')
@click.option('--token', 'token_address', help='Only entries of pairs containing this token')
@click.option('--height', type=int, help='Only entries at this height')
@click.option('--from-block-time', type=int, help='Only entries at or after this micro-block time (ms)')
@click.option('--to-block-time', type=int, help='Only entries at or before this micro-block time (ms)')
@click.pass_context
def list_entries(ctx, limit, offset, order, pair_address, token_address, height, from_block_time, to_block_time):
    """Print history entries with USD values as JSON"""
    cli_context = ctx.obj['cli_context']

    query = HistoryQuery(
        limit=limit,
        offset=offset,
        order=OrderDirection(order),
        pair_address=pair_address,
        token_address=token_address,
        height=height,
        from_block_time=from_block_time,
        to_block_time=to_block_time,
    )

    try:
        entries = cli_context.get(HistoryService).get_all_history_entries(query)
    except HistoryIndexerError as e:
        raise click.ClickException(str(e))

    click.echo(msgspec.json.encode(entries).decode())
