"""atcompile CLI - expand @file references in markdown documents."""

import logging

import click

from . import __version__
from .commands.compile import compile_cmd
from .commands.config import config as config_group
from .commands.graph import graph_cmd
from .lib.settings import AppSettings
from .logging_setup import init_json_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="atcompile")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write JSONL logs to this file (default: $ATCOMPILE_LOG_PATH or settings)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the log file",
)
@click.pass_context
def cli(ctx: click.Context, log_file: str | None, log_level: str | None):
    """atcompile - compile markdown files by expanding @references."""
    ctx.ensure_object(dict)
    settings: AppSettings = ctx.obj.setdefault("settings", AppSettings())

    log_path = log_file or settings.get_log_path()
    if log_path:
        init_json_logging(log_path, log_level or settings.get_log_level())
        logger.debug(f"Logging to {log_path}")


cli.add_command(compile_cmd)
cli.add_command(graph_cmd)
cli.add_command(config_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
