# history_indexer/cli/commands/serve.py

import click
import uvicorn


@click.command('serve')
@click.option('--host', default='0.0.0.0', show_default=True, help='Interface to bind')
@click.option('--port', default=8000, type=int, show_default=True, help='Port to listen on')
@click.option('--reload', is_flag=True, help='Restart on code changes (development)')
def serve(host, port, reload):
    """Serve the graph and history HTTP API"""
    click.echo(f"Serving history API on {host}:{port}")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload)
