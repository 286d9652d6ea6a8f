"""The ``validate`` command."""

from __future__ import annotations

import typer
from rich.console import Console

from clawcheck.application.progress import NullReporter, ProgressReporter
from clawcheck.application.validate import ValidationEngine
from clawcheck.cli import options as cli_options
from clawcheck.cli.helpers import prepare_run
from clawcheck.cli.rendering import ConsoleReporter, emit_json, render_validation_summary
from clawcheck.cli.sync_bridge import await_sync
from clawcheck.config.settings import RunInputs, RuntimeSettings
from clawcheck.domain.models import ValidationRun
from clawcheck.infrastructure.logging import BoundLogger
from clawcheck.integrations.dashclaw.client import ProbeClient


async def execute_validation(
    runtime_settings: RuntimeSettings,
    *,
    logger: BoundLogger,
    reporter: ProgressReporter,
) -> ValidationRun:
    async with ProbeClient.from_settings(runtime_settings, logger=logger) as client:
        engine = ValidationEngine(runtime_settings, client, logger=logger, reporter=reporter)
        return await engine.run()


def register(app: typer.Typer, *, stdout_console: Console, stderr_console: Console) -> None:
    @app.command(
        help="Check that an agent's DashClaw integration is configured and reachable.",
    )
    def validate(
        config: cli_options.ConfigPathOption = None,
        base_url: cli_options.BaseUrlOption = None,
        api_key: cli_options.ApiKeyOption = None,
        agent_id: cli_options.AgentIdOption = None,
        full: cli_options.FullOption = False,
        json_output: cli_options.JsonOutputOption = False,
        log_level: cli_options.LogLevelOption = None,
        log_format: cli_options.LogFormatOption = None,
        log_file: cli_options.LogFileOption = None,
    ) -> None:
        """Run the integration checklist and exit non-zero when a check fails."""

        runtime_settings, logger = prepare_run(
            stderr_console=stderr_console,
            logger_name="clawcheck.validate",
            config_path=config,
            base_url=base_url,
            api_key=api_key,
            run_inputs=RunInputs(
                agent_id=agent_id,
                full=True if full else None,
                json_output=json_output,
            ),
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )

        reporter: ProgressReporter = (
            NullReporter() if runtime_settings.json_output else ConsoleReporter(stdout_console)
        )
        run = await_sync(
            execute_validation(runtime_settings, logger=logger, reporter=reporter)
        )

        if runtime_settings.json_output:
            emit_json(stdout_console, run.to_dict())
        else:
            render_validation_summary(stdout_console, run)

        raise typer.Exit(code=run.exit_code())


__all__ = ["execute_validation", "register"]
