"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy MemoryService initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kgmemory.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from kgmemory.config.settings import KgSettings
    from kgmemory.services.memory import MemoryService
    from kgmemory.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The memory file is opened on first use of :attr:`service`, so
    ``--help`` and ``--version`` never create it.
    """

    def __init__(self, settings: KgSettings) -> None:
        self.settings = settings
        self._service: MemoryService | None = None

        from kgmemory.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from kgmemory.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def service(self) -> MemoryService:
        """The memory service (backing file opened lazily on first access)."""
        if self._service is None:
            from kgmemory.services.memory import MemoryService

            self._service = MemoryService.from_settings(self.settings)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
