"""Custom Click base classes.

KgCommand and KgGroup accept an ``examples`` parameter: passing
``--examples`` prints usage examples and exits, keeping ``--help`` short.
Both also turn store errors raised outside a ServiceResult (opening the
memory file at startup, for instance) into a clean ``Error:`` line with
exit code 1 instead of a traceback.
"""

from __future__ import annotations

from typing import Any

import click

from kgmemory.errors import KgMemoryError


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class KgCommand(click.Command):
    """Click Command with ``--examples`` and store-error reporting."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except KgMemoryError as exc:
            raise click.ClickException(str(exc)) from exc


class KgGroup(click.Group):
    """Click Group with ``--examples``.

    Sets ``command_class = KgCommand`` so all subcommands get the same
    behaviour without an explicit ``cls=`` each time.
    """

    command_class = KgCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
