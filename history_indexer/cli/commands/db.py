# history_indexer/cli/commands/db.py

"""
Database CLI Commands
"""

import click


@click.group()
def db():
    """Manage the history database"""
    pass


@db.command('init')
@click.pass_context
def init(ctx):
    """Create missing tables"""
    cli_context = ctx.obj['cli_context']

    try:
        cli_context.db_manager.create_tables()
        click.echo("✅ Database tables created")
    except Exception as e:
        raise click.ClickException(f"Failed to create tables: {e}")


@db.command('health')
@click.pass_context
def health(ctx):
    """Check the database connection"""
    cli_context = ctx.obj['cli_context']

    if not cli_context.db_manager.health_check():
        raise click.ClickException("Database health check failed")
    click.echo("✅ Database connection healthy")
