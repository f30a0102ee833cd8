"""CLI entrypoint for the DIRAC Nagios probe."""

import rich_click as click

from dirac_probe.probe.controllers import (
    ProbeCliController,
    ProbeCommand,
    ProbeMode,
)

PROBE_CONTROLLER = ProbeCliController()


@click.command(
    add_help_option=False,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.option("-h", "--help", "show_help", is_flag=True, help="Print this help message.")
@click.option("-v", "--version", "show_version", is_flag=True, help="Print probe version.")
@click.option("-s", "--submit", is_flag=True, help="Submit test jobs.")
@click.option("-c", "--check", is_flag=True, help="Check jobs statuses.")
@click.option(
    "-t",
    "--notimeout",
    is_flag=True,
    help="Do not skip remaining jobs when the run gets close to the Nagios timeout.",
)
@click.pass_context
def check_dirac(  # noqa: PLR0913
    ctx: click.Context,
    show_help: bool,
    show_version: bool,
    submit: bool,
    check: bool,
    notimeout: bool,
) -> None:
    """Submit canary jobs to DIRAC or check the ones already submitted."""

    command = ProbeCommand(
        mode=_select_mode(
            show_help=show_help,
            show_version=show_version,
            submit=submit,
            check=check,
            extra_args=tuple(ctx.args),
        ),
        enforce_deadline=not notimeout,
        unrecognized=tuple(ctx.args),
    )
    for argument in command.unrecognized:
        click.echo(f"Incorrect input : {argument}")

    result = PROBE_CONTROLLER.run(command)
    _emit_lines(result.usage)
    _emit_lines(result.lines)
    ctx.exit(result.exit_code)


def _select_mode(
    *,
    show_help: bool,
    show_version: bool,
    submit: bool,
    check: bool,
    extra_args: tuple[str, ...],
) -> str:
    if extra_args:
        return ProbeMode.INCORRECT
    if show_help:
        return ProbeMode.USAGE
    if show_version:
        return ProbeMode.VERSION
    if submit and check:
        return ProbeMode.INCORRECT
    if submit:
        return ProbeMode.SUBMIT
    if check:
        return ProbeMode.CHECK
    return ProbeMode.INCORRECT


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    check_dirac()
