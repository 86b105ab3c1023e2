"""docbridge CLI entrypoint."""

from __future__ import annotations

import asyncio

import click

from docbridge.api import convert
from docbridge.errors import DocbridgeError
from docbridge.log import configure_logging
from docbridge.options import THEMES, EncodeOptions


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("input_path", metavar="INPUT")
@click.argument("output_path", metavar="[OUTPUT]", required=False)
@click.option("--from", "from_", type=str, default=None, help="Input format (extension name or media type)")
@click.option("--to", type=str, default=None, help="Output format (extension name or media type)")
@click.option("--standalone/--fragment", default=False, show_default=True, help="Emit a complete document")
@click.option("--bundle", is_flag=True, help="Inline local images as data URIs")
@click.option("--theme", type=click.Choice(THEMES, case_sensitive=False), default=None, help="Stylesheet for standalone HTML")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Diagnostics written to stderr",
)
def main(
    input_path: str,
    output_path: str | None,
    from_: str | None,
    to: str | None,
    standalone: bool,
    bundle: bool,
    theme: str | None,
    log_level: str,
) -> None:
    """Convert INPUT (a path, or - for stdin) into another format.

    The result is written to OUTPUT when given, otherwise to stdout.
    """
    configure_logging(log_level)
    options = EncodeOptions(is_standalone=standalone, is_bundle=bundle, theme=theme.lower() if theme else None)

    try:
        result = asyncio.run(convert(input_path, output_path, to=to, from_=from_, options=options))
    except (DocbridgeError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    if output_path is None:
        click.echo(result, nl=not result.endswith("\n"))
    elif output_path != "-":
        click.echo(f"Converted: {output_path}", err=True)


if __name__ == "__main__":  # pragma: no cover
    main()
