"""
remsh command-line interface.

Usage:
    remsh                                  # interactive shell on localhost:8101
    remsh -h broker.example.com -a 8101 -u admin -p secret
    remsh -r 10 -d 3 osgi:list             # run one command, retrying while the endpoint starts
"""

from __future__ import annotations

import click
from pydantic import ValidationError

from remsh.config import get_settings
from remsh.logging import configure_logging
from remsh.models.config import ConnectionConfig


class ClientCommand(click.Command):
    """Command whose usage errors exit with status 1."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(
    cls=ClientCommand,
    epilog=(
        "If no commands are specified, the client will be put in an interactive mode. "
        "Exit status is 0 on success, 1 on error and 130 when interrupted."
    ),
)
@click.option(
    "-a",
    "port",
    type=click.IntRange(1, 65535),
    metavar="PORT",
    help="specify the port to connect to",
)
@click.option("-h", "host", metavar="HOST", help="specify the host to connect to")
@click.option("-u", "user", metavar="USER", help="specify the user name")
@click.option("-p", "password", metavar="PASSWORD", help="specify the password")
@click.option("-v", "verbose", count=True, help="raise verbosity")
@click.option(
    "-r",
    "retry_attempts",
    type=click.IntRange(min=0),
    metavar="ATTEMPTS",
    help="retry connection establishment (up to attempts times)",
)
@click.option(
    "-d",
    "retry_delay",
    type=click.FloatRange(min=0),
    metavar="DELAY",
    help="intra-retry delay (defaults to 2 seconds)",
)
@click.argument("commands", nargs=-1)
@click.version_option(package_name="remsh")
def main(
    port: int | None,
    host: str | None,
    user: str | None,
    password: str | None,
    verbose: int,
    retry_attempts: int | None,
    retry_delay: float | None,
    commands: tuple[str, ...],
) -> None:
    """Remote shell client.

    Connects to a remote management endpoint over SSH and runs COMMANDS,
    or opens an interactive shell when none are given.
    """
    verbosity = 1 + verbose
    try:
        settings = get_settings()
        config = ConnectionConfig.from_settings(
            settings,
            host=host,
            port=port,
            username=user,
            password=password,
            max_attempts=retry_attempts,
            delay_seconds=retry_delay,
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {_describe(e)}") from e

    # REMSH_LOG_LEVEL applies only when no -v was given
    configure_logging(verbosity, level=None if verbose else settings.log_level)

    from remsh.shell import run_client

    code = run_client(config, list(commands), verbosity=verbosity)
    raise SystemExit(code)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


if __name__ == "__main__":
    main()
