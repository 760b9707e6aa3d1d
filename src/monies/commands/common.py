"""State shared by all commands: the run config and output format from global options."""

from __future__ import annotations

from dataclasses import dataclass, field

import typer

from monies.config import RunConfig, get_config
from monies.utils.output import OutputFormat


@dataclass
class CliState:
    run: RunConfig = field(default_factory=RunConfig)
    output: OutputFormat = OutputFormat.TABLE


def get_state(ctx: typer.Context) -> CliState:
    """State set by the root callback, or defaults when a sub-app runs alone."""
    state = ctx.find_object(CliState)
    if state is None:
        state = CliState(run=RunConfig(settings=get_config()))
        ctx.obj = state
    return state


def resolve_output(state: CliState, output: OutputFormat | None) -> OutputFormat:
    """A command-level ``--output`` overrides the global one."""
    return output or state.output
