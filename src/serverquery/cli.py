"""ServerQuery CLI.

Usage:
    serverquery enums                      # List all constant tables
    serverquery enums LogLevel             # Show one table
    serverquery escape "hello world"       # -> hello\\sworld
    serverquery unescape 'hello\\sworld'    # -> hello world

    serverquery exec version
    serverquery exec --user serveradmin --password secret --sid 1 clientlist -uid
    serverquery exec --host ts.example.org channelinfo cid=5 --format json
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from .client import QueryClient
from .config import ClientConfig
from .enums import ENUMS, get_enum
from .errors import CommandError, EnumLookupError, ProtocolFramingError
from .protocol.commands import Command, CommandData
from .protocol.escaping import escape, unescape
from .protocol.events import Row

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


def truncate(text: str | None, max_len: int = 50) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_arguments(args: tuple[str, ...]) -> CommandData:
    """Turn command line words into command data.

    ``key=value`` words become pairs, ``-flag`` words become flags and a
    single bare word is passed as a scalar.
    """
    if not args:
        return None
    if len(args) == 1 and "=" not in args[0] and not args[0].startswith("-"):
        return args[0]

    data: dict[str, str | bool] = {}
    for arg in args:
        if arg.startswith("-"):
            data[arg] = True
            continue
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value or -flag, got {arg!r}")
        data[key] = value
    return data


def print_rows(rows: list[Row], output_format: str) -> None:
    if output_format == FORMAT_JSON:
        click.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return

    if not rows:
        click.echo("OK (no rows)")
        return

    for index, row in enumerate(rows):
        if index:
            click.echo("-" * 40)
        width = max(len(key) for key in row) if row else 0
        for key, value in row.items():
            click.echo(f"{key:<{width}}  {truncate(value, 80)}")

    click.echo(f"\nTotal: {len(rows)} row(s)")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log protocol traffic to stderr")
def main(verbose: bool) -> None:
    """ServerQuery client - talk to a voice server's query interface."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


@main.command("enums")
@click.argument("name", required=False)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
def enums(name: str | None, output_format: str) -> None:
    """Show the named constant tables.

    Examples:

        serverquery enums

        serverquery enums TokenType --format json
    """
    try:
        tables = [get_enum(name)] if name else list(ENUMS.values())
    except EnumLookupError as e:
        raise click.BadParameter(f"{e}. Known: {', '.join(ENUMS)}", param_hint="NAME") from e

    if output_format == FORMAT_JSON:
        payload = {
            table.__name__: [
                {"name": s.name, "value": int(s), "description": s.description}
                for s in table.symbols()
            ]
            for table in tables
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for table in tables:
        click.echo(table.__name__)
        for symbol in table.symbols():
            click.echo(f"  {int(symbol):>3}  {symbol.name:<15} {symbol.description}")


@main.command("escape")
@click.argument("text")
def escape_cmd(text: str) -> None:
    """Escape TEXT for use as a ServerQuery value."""
    click.echo(escape(text))


@main.command("unescape")
@click.argument("text")
def unescape_cmd(text: str) -> None:
    """Decode an escaped ServerQuery value."""
    try:
        click.echo(unescape(text))
    except ProtocolFramingError as e:
        raise click.BadParameter(str(e), param_hint="TEXT") from e


@main.command("exec", context_settings={"ignore_unknown_options": True})
@click.option("--host", default=None, help="Server address (env: SERVERQUERY_HOST)")
@click.option("--port", default=None, type=int, help="Query port (env: SERVERQUERY_PORT)")
@click.option("--user", default=None, help="Log in as this query user first")
@click.option("--password", default=None, help="Query password")
@click.option("--sid", default=None, type=int, help="Select this virtual server first")
@click.option(
    "--timeout", default=None, type=float, help="Seconds to wait for the response (default: 10)"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.argument("verb")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def exec_cmd(
    host: str | None,
    port: int | None,
    user: str | None,
    password: str | None,
    sid: int | None,
    timeout: float | None,
    output_format: str,
    verb: str,
    args: tuple[str, ...],
) -> None:
    """Run one command and print the response rows.

    Arguments after VERB are key=value pairs, -flags, or a single value.

    Examples:

        serverquery exec version

        serverquery exec --user serveradmin --password secret --sid 1 clientlist -uid -away
    """
    if user and password is None:
        password = click.prompt("Password", hide_input=True)

    config = ClientConfig.from_env(host=host, port=port, command_timeout=timeout)
    if config.command_timeout is None:
        config.command_timeout = 10.0
    data = parse_arguments(args)

    async def execute() -> list[Row]:
        async with QueryClient(config) as client:
            if user:
                await client.authenticate(user, password or "")
            if sid is not None:
                await client.execute(Command.use(sid=sid))
            return await client.send(verb, data)

    try:
        rows = asyncio.run(execute())
    except CommandError as e:
        click.echo(f"Error {e.code}: {e.message}", err=True)
        if e.extra_message:
            click.echo(f"  {e.extra_message}", err=True)
        sys.exit(1)
    except (ConnectionError, TimeoutError, ProtocolFramingError) as e:
        click.echo(f"Cannot talk to {config.host}:{config.port}: {e}", err=True)
        sys.exit(1)

    print_rows(rows, output_format)


if __name__ == "__main__":
    main()
