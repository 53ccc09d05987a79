"""agswitch command line interface.

Subcommands:
    failover  Run the full orchestration against a target node.
    plan      Inventory and role filtering only; changes nothing.
    status    Read-only health audit of every group on a node.

Exit codes: 0 success or no-op, 1 partial success, 2 aborted (node
unreachable or inventory rejected), 3 configuration or installation error.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Sequence, TextIO

from agswitch import __version__
from agswitch.adapters.ports import ClusterAdminGatewayPort
from agswitch.adapters.prometheus_metrics import PrometheusMetricsAdapter
from agswitch.domain.exceptions import ConfigError, GatewayError
from agswitch.domain.failover import SyncTimeoutPolicy
from agswitch.domain.health import ReplicaHealthRecord
from agswitch.domain.replica_group import ReplicaGroup
from agswitch.domain.run import GroupResult, OrchestrationRun, RunStatus
from agswitch.domain.settings import OrchestratorSettings
from agswitch.factories import (
    PrometheusClientNotInstalledError,
    SqlAlchemyNotInstalledError,
    create_approval_provider,
    create_gateway,
    create_metrics,
    create_orchestrator,
    create_run_context,
)
from agswitch.usecases.config_parser import ConfigParser
from agswitch.usecases.failover_executor import FailoverExecutor
from agswitch.usecases.inventory import ReplicaGroupInventory
from agswitch.usecases.post_failover_auditor import PostFailoverAuditor
from agswitch.usecases.selection_policy import SelectionPolicy

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_ABORTED = 2
EXIT_CONFIG = 3

_EXIT_CODES = {
    RunStatus.SUCCEEDED: EXIT_OK,
    RunStatus.NO_OP: EXIT_OK,
    RunStatus.PARTIAL: EXIT_PARTIAL,
    RunStatus.ABORTED: EXIT_ABORTED,
}

GatewayFactory = Callable[[OrchestratorSettings], ClusterAdminGatewayPort]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agswitch",
        description="Planned failover of SQL Server Always On availability groups.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, help="YAML configuration file")
    common.add_argument("--node", help="Target node (overrides target_node)")
    common.add_argument(
        "--gateway-url",
        help="SQLAlchemy URL template with a {node} placeholder "
        "(overrides gateway.url_template)",
    )
    common.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format: text (default) or json",
    )
    common.add_argument("--log-file", type=Path, help="Write logs to this file")
    common.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    failover = subparsers.add_parser(
        "failover", parents=[common], help="Fail selected groups over to the node"
    )
    approval = failover.add_mutually_exclusive_group()
    approval.add_argument(
        "--yes", action="store_true", help="Approve every candidate group"
    )
    approval.add_argument(
        "--approve",
        action="append",
        metavar="GROUP",
        help="Approve this group (repeatable; overrides approved_groups)",
    )
    failover.add_argument(
        "--benchmark",
        action="store_true",
        help="Fail back to the original primary and time both probes",
    )
    failover.add_argument(
        "--on-sync-timeout",
        choices=[policy.value for policy in SyncTimeoutPolicy],
        help="Decision when databases do not synchronize in time",
    )
    failover.add_argument(
        "--sync-timeout", type=float, help="Synchronization wait limit in seconds"
    )
    failover.add_argument(
        "--poll-interval", type=float, help="Synchronization poll interval in seconds"
    )
    failover.add_argument(
        "--metrics-textfile",
        type=Path,
        help="Write Prometheus metrics to this file after the run",
    )

    subparsers.add_parser(
        "plan", parents=[common], help="Show candidate groups without changing anything"
    )
    subparsers.add_parser(
        "status", parents=[common], help="Show replica health of every group on the node"
    )
    return parser


def load_settings(args: argparse.Namespace) -> OrchestratorSettings:
    """Build settings from the config file and command line overrides.

    Raises:
        ConfigError: If the file cannot be read or the result is invalid.
    """
    if args.config is not None:
        try:
            settings = ConfigParser().parse(args.config.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config file {args.config}: {e}") from e
    elif args.node:
        settings = OrchestratorSettings(target_node=args.node)
    else:
        raise ConfigError("either --config or --node is required")

    overrides: dict[str, Any] = {}
    if args.node:
        overrides["target_node"] = args.node
    if args.gateway_url:
        overrides["gateway_url_template"] = args.gateway_url
    if getattr(args, "approve", None):
        overrides["approved_groups"] = tuple(args.approve)
    if getattr(args, "benchmark", False):
        overrides["benchmark"] = True
    if getattr(args, "on_sync_timeout", None):
        overrides["on_sync_timeout"] = SyncTimeoutPolicy(args.on_sync_timeout)
    if getattr(args, "sync_timeout", None) is not None:
        overrides["sync_timeout_seconds"] = args.sync_timeout
    if getattr(args, "poll_interval", None) is not None:
        overrides["poll_interval_seconds"] = args.poll_interval

    # replace() re-runs __post_init__ validation.
    return dataclasses.replace(settings, **overrides) if overrides else settings


def configure_logging(verbosity: int, log_file: Path | None = None) -> None:
    level = logging.DEBUG if verbosity >= 2 else logging.INFO if verbosity else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        filename=str(log_file) if log_file else None,
    )
    logging.getLogger("agswitch").setLevel(level)


# ----- Rendering -----


def _result_to_dict(result: GroupResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "group": result.group_name,
        "succeeded": result.succeeded,
        "mode_transitioned": result.mode_transitioned,
        "sync_outcome": result.sync_outcome.value if result.sync_outcome else None,
        "failover_outcome": (
            result.failover_outcome.value if result.failover_outcome else None
        ),
        "reverted": result.reverted,
        "final_state": result.final_state.value,
        "failed_step": result.failed_step.value if result.failed_step else None,
        "error": result.error,
        "health": [_health_to_dict(record) for record in result.final_health],
    }
    if result.benchmark is not None:
        report = result.benchmark
        data["benchmark"] = {
            "failover_seconds": report.failover_seconds,
            "first_probe_seconds": report.first_probe_seconds,
            "failback_outcome": report.failback.outcome.value if report.failback else None,
            "second_probe_seconds": report.second_probe_seconds,
            "round_trip_seconds": report.round_trip_seconds,
        }
    return data


def _health_to_dict(record: ReplicaHealthRecord) -> dict[str, Any]:
    return {
        "group": record.group_name,
        "replica": record.replica_name,
        "role": record.role.value,
        "failover_mode": record.failover_mode.value,
        "availability_mode": record.availability_mode.value,
        "connection_state": record.connection_state.value,
    }


def run_to_dict(run: OrchestrationRun) -> dict[str, Any]:
    summary = run.summary()
    return {
        "run_id": run.run_id,
        "target_node": run.target_node,
        "status": summary.status.value,
        "summary": summary.describe(),
        "processed": summary.processed,
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "aborted_reason": run.aborted_reason,
        "attempts": [
            {
                "group": attempt.group_name,
                "target": attempt.target_endpoint,
                "started_at": attempt.started_at.isoformat(),
                "duration": attempt.duration,
                "outcome": attempt.outcome.value,
                "error": attempt.error,
            }
            for attempt in run.attempts
        ],
        "results": [_result_to_dict(result) for result in run.results],
    }


def _write_run_text(run: OrchestrationRun, out: TextIO) -> None:
    summary = run.summary()
    out.write(f"Run {run.run_id} on {run.target_node}: {summary.describe()}\n")
    if run.aborted_reason:
        out.write(f"  Reason: {run.aborted_reason}\n")
    for result in run.results:
        status = "OK  " if result.succeeded else "FAIL"
        line = (
            f"  {status} {result.group_name}: "
            f"failover={_value(result.failover_outcome)} "
            f"sync={_value(result.sync_outcome)} "
            f"reverted={'yes' if result.reverted else 'no'}"
        )
        if result.failed_step is not None:
            line += f" [{result.failed_step.value}: {result.error}]"
        out.write(line + "\n")
        if result.benchmark is not None and result.benchmark.round_trip_seconds is not None:
            out.write(f"       round trip {result.benchmark.round_trip_seconds:.2f}s\n")


def _value(member: Any) -> str:
    return member.value if member is not None else "-"


def _write_json(data: Any, out: TextIO) -> None:
    out.write(json.dumps(data, indent=2) + "\n")


# ----- Commands -----


def _cmd_failover(
    args: argparse.Namespace,
    settings: OrchestratorSettings,
    gateway: ClusterAdminGatewayPort,
    out: TextIO,
    err: TextIO,
    input_func: Callable[[str], str],
) -> int:
    metrics = create_metrics(enabled=args.metrics_textfile is not None)
    context = create_run_context(settings, gateway, metrics=metrics)
    approval = create_approval_provider(
        settings,
        assume_yes=args.yes,
        input_func=input_func,
        output_func=lambda message: out.write(message + "\n"),
    )
    run = create_orchestrator(context, approval).run()

    if isinstance(metrics, PrometheusMetricsAdapter):
        try:
            metrics.write_textfile(args.metrics_textfile)
        except OSError as e:
            err.write(f"agswitch: cannot write metrics to {args.metrics_textfile}: {e}\n")

    if args.format == "json":
        _write_json(run_to_dict(run), out)
    else:
        _write_run_text(run, out)
    return _EXIT_CODES[run.status]


def _cmd_plan(
    args: argparse.Namespace,
    settings: OrchestratorSettings,
    gateway: ClusterAdminGatewayPort,
    out: TextIO,
) -> int:
    context = create_run_context(settings, gateway)
    groups = ReplicaGroupInventory(context).list_groups(settings.target_node)
    candidates = {
        group.name
        for group in SelectionPolicy.filter_by_role(groups, settings.candidate_role)
    }
    counts = ReplicaGroupInventory.count_by_mode(groups)

    if args.format == "json":
        _write_json(
            {
                "target_node": settings.target_node,
                "groups": [_group_to_dict(g, g.name in candidates) for g in groups],
                "mode_counts": {mode.value: count for mode, count in counts.items()},
            },
            out,
        )
        return EXIT_OK

    out.write(f"Replica groups on {settings.target_node}:\n")
    if not groups:
        out.write("  (none)\n")
    for group in groups:
        marker = "*" if group.name in candidates else " "
        out.write(
            f"  {marker} {group.name}: role={group.local_role.value} "
            f"mode={group.original_mode.value} primary={group.primary_endpoint}\n"
        )
    modes = ", ".join(f"{count} {mode.value}" for mode, count in counts.items())
    out.write(f"Commit modes: {modes}\n")
    out.write(f"{len(candidates)} candidate(s) for failover (marked *)\n")
    return EXIT_OK


def _group_to_dict(group: ReplicaGroup, candidate: bool) -> dict[str, Any]:
    return {
        "name": group.name,
        "primary": group.primary_endpoint,
        "local_role": group.local_role.value,
        "mode": group.original_mode.value,
        "replicas": [replica.name for replica in group.replicas],
        "candidate": candidate,
    }


def _cmd_status(
    args: argparse.Namespace,
    settings: OrchestratorSettings,
    gateway: ClusterAdminGatewayPort,
    out: TextIO,
) -> int:
    context = create_run_context(settings, gateway)
    # Fail fast on an unreachable node; the audit itself never raises.
    gateway.query_server_property(settings.target_node, "ServerName")
    records = PostFailoverAuditor(context, FailoverExecutor(context)).audit_state(
        settings.target_node
    )

    if args.format == "json":
        _write_json(
            {
                "node": settings.target_node,
                "replicas": [_health_to_dict(record) for record in records],
            },
            out,
        )
        return EXIT_OK

    out.write(f"Replica health seen from {settings.target_node}:\n")
    if not records:
        out.write("  (no replicas)\n")
    for record in records:
        out.write(
            f"  {record.group_name}/{record.replica_name}: {record.role.value}, "
            f"{record.availability_mode.value}, {record.failover_mode.value} failover, "
            f"{record.connection_state.value}\n"
        )
    return EXIT_OK


def main(
    argv: Sequence[str] | None = None,
    gateway_factory: GatewayFactory = create_gateway,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    input_func: Callable[[str], str] = input,
) -> int:
    """Entry point of the agswitch console script.

    Args:
        argv: Arguments (defaults to sys.argv[1:]).
        gateway_factory: Builds the gateway from settings (injected in tests).
        stdout: Output stream for reports.
        stderr: Output stream for errors.
        input_func: Prompt function for interactive approval.

    Returns:
        Process exit code.
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    try:
        settings = load_settings(args)
        gateway = gateway_factory(settings)
        try:
            if args.command == "failover":
                return _cmd_failover(args, settings, gateway, out, err, input_func)
            if args.command == "plan":
                return _cmd_plan(args, settings, gateway, out)
            return _cmd_status(args, settings, gateway, out)
        finally:
            close = getattr(gateway, "close", None)
            if callable(close):
                close()
    except ConfigError as e:
        err.write(f"agswitch: configuration error: {e}\n")
        return EXIT_CONFIG
    except (SqlAlchemyNotInstalledError, PrometheusClientNotInstalledError) as e:
        err.write(f"agswitch: {e}\n")
        return EXIT_CONFIG
    except GatewayError as e:
        err.write(f"agswitch: {e}\n")
        return EXIT_ABORTED


if __name__ == "__main__":
    sys.exit(main())
