"""The ``diagnose`` command."""

from __future__ import annotations

import typer
from rich.console import Console

from clawcheck.application.diagnose import DiagnosticEngine
from clawcheck.application.progress import NullReporter, ProgressReporter
from clawcheck.cli import options as cli_options
from clawcheck.cli.helpers import prepare_run
from clawcheck.cli.rendering import ConsoleReporter, emit_json, render_diagnosis_summary
from clawcheck.cli.sync_bridge import await_sync
from clawcheck.config.settings import RunInputs, RuntimeSettings
from clawcheck.domain.models import DiagnosticReport
from clawcheck.infrastructure.logging import BoundLogger
from clawcheck.integrations.dashclaw.client import ProbeClient


async def execute_diagnosis(
    runtime_settings: RuntimeSettings,
    *,
    logger: BoundLogger,
    reporter: ProgressReporter,
) -> DiagnosticReport:
    async with ProbeClient.from_settings(runtime_settings, logger=logger) as client:
        engine = DiagnosticEngine(runtime_settings, client, logger=logger, reporter=reporter)
        return await engine.run()


def register(app: typer.Typer, *, stdout_console: Console, stderr_console: Console) -> None:
    @app.command(
        help="Trace connectivity, authentication and latency and suggest fixes.",
    )
    def diagnose(
        config: cli_options.ConfigPathOption = None,
        base_url: cli_options.BaseUrlOption = None,
        api_key: cli_options.ApiKeyOption = None,
        error: cli_options.ErrorHintOption = None,
        endpoint: cli_options.EndpointOption = None,
        json_output: cli_options.JsonOutputOption = False,
        log_level: cli_options.LogLevelOption = None,
        log_format: cli_options.LogFormatOption = None,
        log_file: cli_options.LogFileOption = None,
    ) -> None:
        """Diagnose a DashClaw server and exit non-zero when issues are found."""

        runtime_settings, logger = prepare_run(
            stderr_console=stderr_console,
            logger_name="clawcheck.diagnose",
            config_path=config,
            base_url=base_url,
            api_key=api_key,
            run_inputs=RunInputs(error_hint=error, endpoint=endpoint, json_output=json_output),
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )

        reporter: ProgressReporter = (
            NullReporter() if runtime_settings.json_output else ConsoleReporter(stdout_console)
        )
        report = await_sync(
            execute_diagnosis(runtime_settings, logger=logger, reporter=reporter)
        )

        if runtime_settings.json_output:
            emit_json(stdout_console, report.to_dict())
        else:
            render_diagnosis_summary(stdout_console, report)

        raise typer.Exit(code=report.exit_code())


__all__ = ["execute_diagnosis", "register"]
