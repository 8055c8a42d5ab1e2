"""Subcommand modules for kgmemory.

Provides register_commands() which uses deferred imports to keep
``kgmemory --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``graph`` group and the standalone commands on the root group.

    ``memory-server`` is an alias of ``serve``.
    """
    from kgmemory.commands.call import call
    from kgmemory.commands.graph import graph
    from kgmemory.commands.serve import serve

    cli.add_command(graph)
    cli.add_command(call)
    cli.add_command(serve)
    cli.add_command(serve, name="memory-server")
