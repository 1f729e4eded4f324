from pathlib import Path
from typing import Any
from typing import assert_never

import click
from click_option_group import optgroup
from loguru import logger

from waitfor.common.models import FrozenModel
from waitfor.conditions import constructors
from waitfor.conditions.data_types import Condition
from waitfor.config.data_types import WaitforConfig
from waitfor.config.loader import load_config
from waitfor.expression import CombinatorNode
from waitfor.expression import ConditionLeaf
from waitfor.expression import all_of
from waitfor.expression import any_of
from waitfor.expression import describe_expression
from waitfor.parsing.duration import parse_duration_to_seconds
from waitfor.parsing.targets import parse_host_port
from waitfor.parsing.targets import parse_http_get_arg
from waitfor.primitives import CombineMode
from waitfor.primitives import LogLevel
from waitfor.scheduler import wait_until_met
from waitfor.utils.logging import setup_logging


class WaitforCliOptions(FrozenModel):
    """Options passed from the CLI to the waitfor command."""

    interval: str | None
    verbose: int
    quiet: bool
    config_path: Path | None
    is_all: bool | None
    http_timeout: str | None
    tcp_timeout: str | None
    elapsed: str | None
    exists: tuple[str, ...]
    not_exists: tuple[str, ...]
    updated: tuple[str, ...]
    not_updated: tuple[str, ...]
    size_changed: tuple[str, ...]
    not_size_changed: tuple[str, ...]
    modified_within: tuple[tuple[str, str], ...]
    not_modified_within: tuple[tuple[str, str], ...]
    get: tuple[str, ...]
    not_get: tuple[str, ...]
    connect: tuple[str, ...]
    not_connect: tuple[str, ...]
    pid_exited: tuple[int, ...]
    pid_running: tuple[int, ...]


def _get_cli_log_level(opts: WaitforCliOptions) -> LogLevel | None:
    if opts.quiet and opts.verbose:
        raise click.UsageError("--quiet and --verbose cannot be combined")
    if opts.quiet:
        return LogLevel.ERROR
    if opts.verbose >= 2:
        return LogLevel.TRACE
    if opts.verbose == 1:
        return LogLevel.DEBUG
    return None


def _apply_cli_overrides(config: WaitforConfig, opts: WaitforCliOptions) -> WaitforConfig:
    """Layer the explicitly passed CLI flags on top of the loaded config."""
    overrides: dict[str, Any] = {}
    if opts.interval is not None:
        overrides["interval_seconds"] = parse_duration_to_seconds(opts.interval, is_zero_allowed=False)
    if opts.http_timeout is not None:
        overrides["http_timeout_seconds"] = parse_duration_to_seconds(opts.http_timeout, is_zero_allowed=False)
    if opts.tcp_timeout is not None:
        overrides["tcp_timeout_seconds"] = parse_duration_to_seconds(opts.tcp_timeout, is_zero_allowed=False)
    if opts.is_all is not None:
        overrides["combine_mode"] = CombineMode.ALL if opts.is_all else CombineMode.ANY
    cli_log_level = _get_cli_log_level(opts)
    if cli_log_level is not None:
        overrides["log_level"] = cli_log_level
    return config.merge_with(WaitforConfig.model_validate(overrides))


def build_conditions(opts: WaitforCliOptions, config: WaitforConfig) -> list[Condition]:
    """Turn the parsed flags into condition values, in a fixed order.

    File-state conditions stat their targets here, so a bad path aborts before any polling.
    """
    conditions: list[Condition] = []

    if opts.elapsed is not None:
        conditions.append(constructors.elapsed(parse_duration_to_seconds(opts.elapsed)))

    for path in opts.exists:
        conditions.append(constructors.exists(path))
    for path in opts.not_exists:
        conditions.append(constructors.exists(path, is_negated=True))

    for path in opts.updated:
        conditions.append(constructors.updated(path))
    for path in opts.not_updated:
        conditions.append(constructors.updated(path, is_negated=True))

    for path in opts.size_changed:
        conditions.append(constructors.size_changed(path))
    for path in opts.not_size_changed:
        conditions.append(constructors.size_changed(path, is_negated=True))

    for window, path in opts.modified_within:
        conditions.append(
            constructors.modified_within(path, parse_duration_to_seconds(window, is_zero_allowed=False))
        )
    for window, path in opts.not_modified_within:
        conditions.append(
            constructors.modified_within(
                path,
                parse_duration_to_seconds(window, is_zero_allowed=False),
                is_negated=True,
            )
        )

    for url_arg in opts.get:
        status, url = parse_http_get_arg(url_arg)
        conditions.append(constructors.http_get(url, status, timeout_seconds=config.http_timeout_seconds))
    for url_arg in opts.not_get:
        status, url = parse_http_get_arg(url_arg)
        conditions.append(
            constructors.http_get(url, status, is_negated=True, timeout_seconds=config.http_timeout_seconds)
        )

    for host_arg in opts.connect:
        host, port = parse_host_port(host_arg)
        conditions.append(constructors.tcp_connect(host, port, timeout_seconds=config.tcp_timeout_seconds))
    for host_arg in opts.not_connect:
        host, port = parse_host_port(host_arg)
        conditions.append(
            constructors.tcp_connect(host, port, is_negated=True, timeout_seconds=config.tcp_timeout_seconds)
        )

    for pid in opts.pid_exited:
        conditions.append(constructors.process_exited(pid))
    for pid in opts.pid_running:
        conditions.append(constructors.process_exited(pid, is_negated=True))

    return conditions


def build_expression(conditions: list[Condition], combine_mode: CombineMode) -> ConditionLeaf | CombinatorNode:
    match combine_mode:
        case CombineMode.ANY:
            return any_of(*conditions)
        case CombineMode.ALL:
            return all_of(*conditions)
        case _ as unreachable:
            assert_never(unreachable)


@click.command(name="waitfor", context_settings={"help_option_names": ["-h", "--help"]})
@optgroup.group("Time")
@optgroup.option(
    "-t",
    "--elapsed",
    help="Wait until this much time has passed (e.g. 30, 1.5, 90s, 3h10m). Combine with --any for a timeout",
)
@optgroup.group("Files")
@optgroup.option("-e", "--exists", multiple=True, help="Wait until the file or directory exists (repeatable)")
@optgroup.option("-E", "--not-exists", multiple=True, help="Wait until the file or directory is gone (repeatable)")
@optgroup.option(
    "-u",
    "--updated",
    multiple=True,
    help="Wait until the file's modification time changes between two checks (repeatable)",
)
@optgroup.option(
    "-U",
    "--not-updated",
    multiple=True,
    help="Wait until the file's modification time stays the same between two checks (repeatable)",
)
@optgroup.option(
    "-s",
    "--size-changed",
    multiple=True,
    help="Wait until the file's size changes between two checks (repeatable)",
)
@optgroup.option(
    "-S",
    "--not-size-changed",
    multiple=True,
    help="Wait until the file's size stays the same between two checks (repeatable)",
)
@optgroup.option(
    "--modified-within",
    nargs=2,
    multiple=True,
    metavar="DURATION PATH",
    help="Wait until the file was modified less than DURATION ago (repeatable)",
)
@optgroup.option(
    "--not-modified-within",
    nargs=2,
    multiple=True,
    metavar="DURATION PATH",
    help="Wait until the file has not been modified for at least DURATION (repeatable)",
)
@optgroup.group("Network")
@optgroup.option(
    "-g",
    "--get",
    multiple=True,
    metavar="[STATUS,]URL",
    help="Wait until a GET to URL returns STATUS (default 200), e.g. 204,http://localhost:8080/health (repeatable)",
)
@optgroup.option(
    "-G",
    "--not-get",
    multiple=True,
    metavar="[STATUS,]URL",
    help="Wait until a GET to URL no longer returns STATUS (default 200) (repeatable)",
)
@optgroup.option(
    "-c",
    "--connect",
    multiple=True,
    metavar="HOST:PORT",
    help="Wait until a TCP connect succeeds (repeatable)",
)
@optgroup.option(
    "-C",
    "--not-connect",
    multiple=True,
    metavar="HOST:PORT",
    help="Wait until a TCP connect fails (repeatable)",
)
@optgroup.option("--http-timeout", help="Timeout for each HTTP GET (e.g. 5, 2.5, 1m). Default: none")
@optgroup.option("--tcp-timeout", help="Timeout for each TCP connect. Default: the platform's")
@optgroup.group("Processes")
@optgroup.option("-p", "--pid-exited", type=int, multiple=True, help="Wait until the process has exited (repeatable)")
@optgroup.option("-P", "--pid-running", type=int, multiple=True, help="Wait until the process is running (repeatable)")
@optgroup.group("Behavior")
@optgroup.option(
    "--all/--any",
    "is_all",
    default=None,
    help="Wait for all conditions, or for any one of them [default: any]",
)
@optgroup.option("-i", "--interval", help="Time between the starts of two checks (e.g. 2, 0.5, 1m) [default: 2]")
@optgroup.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file to read instead of $WAITFOR_CONFIG or ~/.config/waitfor/settings.toml",
)
@optgroup.group("Output")
@optgroup.option("-v", "--verbose", count=True, help="Log each check (-v) and timing details (-vv) to stderr")
@optgroup.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.pass_context
def waitfor_command(ctx: click.Context, **kwargs: Any) -> None:
    """Block until the given conditions are met, then exit 0.

    Conditions are checked in the order of the option groups above. By default the
    command returns as soon as any one of them is met; with --all it waits for all of them.
    """
    opts = WaitforCliOptions(**kwargs)

    # flags only until the config is loaded
    setup_logging(_get_cli_log_level(opts) or LogLevel.WARN)
    config = _apply_cli_overrides(load_config(config_path=opts.config_path), opts)
    setup_logging(config.log_level)

    conditions = build_conditions(opts, config)
    if not conditions:
        raise click.UsageError("No conditions given. Pass at least one condition option, e.g. --exists PATH.", ctx=ctx)

    expression = build_expression(conditions, config.combine_mode)
    logger.debug("Waiting for {} (checking every {:g}s)", describe_expression(expression), config.interval_seconds)
    wait_until_met(expression, config.interval_seconds)
