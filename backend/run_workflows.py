#!/usr/bin/env python3
"""
n8n workflow operations.

Usage:
    python run_workflows.py list
    python run_workflows.py deploy workflows/weather.json --test-payload '{"city": "Paris"}'
    python run_workflows.py activate WORKFLOW_ID
    python run_workflows.py deactivate WORKFLOW_ID
    python run_workflows.py test-webhook api/v1/weather --payload '{"city": "Paris"}'
    python run_workflows.py fix-webhooks [--workflow WORKFLOW_ID]
    python run_workflows.py executions [--workflow WORKFLOW_ID] [--limit 20]
    python run_workflows.py cleanup "[TEST]" --dry-run

Configuration:
    N8N_BASE_URL and N8N_API_KEY must be set.

Exits with 0 on success and 1 on any failure.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from modules.workflows import (
    N8nClient,
    WebhookRepairer,
    WorkflowDeployer,
    classify_webhook_status,
    load_workflow_definition,
)
from modules.workflows.repair import ACTIVATE_WAIT_SECONDS, DEACTIVATE_WAIT_SECONDS
from shared.exceptions import ClixenError
from shared.logging_config import configure_logging

console = Console()

STATUS_STYLES = {
    "working": "green",
    "not_registered": "yellow",
    "error": "red",
    "reactivated": "green",
    "reactivation_failed": "red",
    "no_webhook_paths": "dim",
}


def parse_json_arg(value: str) -> dict[str, Any]:
    """argparse type for JSON object arguments."""
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError("JSON payload must be an object")
    return data


def styled(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


async def cmd_list(client: N8nClient, args: argparse.Namespace) -> int:
    workflows = await client.list_workflows()

    table = Table(title=f"Workflows ({len(workflows)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Active")
    table.add_column("Nodes", justify="right")
    for workflow in sorted(workflows, key=lambda w: w.name):
        table.add_row(
            workflow.id,
            workflow.name,
            "[green]yes[/green]" if workflow.active else "[dim]no[/dim]",
            str(len(workflow.nodes)),
        )
    console.print(table)
    return 0


async def cmd_deploy(client: N8nClient, args: argparse.Namespace) -> int:
    definition = load_workflow_definition(args.file)
    report = await WorkflowDeployer(client).deploy(
        definition,
        activate=not args.no_activate,
        smoke_payload=args.test_payload,
    )

    action = "Created" if report.created else "Updated"
    console.print(f"[green]✓[/green] {action} workflow {report.name} ({report.workflow_id})")
    if report.activated:
        console.print(f"[green]✓[/green] Activated {report.workflow_id}")

    for result in report.webhook_results:
        status = classify_webhook_status(result.status_code).value
        console.print(f"  {result.path}: {result.status_code} {styled(status)} ({result.elapsed_ms} ms)")

    return 0 if report.success else 1


async def cmd_activate(client: N8nClient, args: argparse.Namespace) -> int:
    workflow = await client.activate_workflow(args.workflow_id)
    console.print(f"[green]✓[/green] Activated {workflow.name or args.workflow_id}")
    return 0


async def cmd_deactivate(client: N8nClient, args: argparse.Namespace) -> int:
    workflow = await client.deactivate_workflow(args.workflow_id)
    console.print(f"[green]✓[/green] Deactivated {workflow.name or args.workflow_id}")
    return 0


async def cmd_test_webhook(client: N8nClient, args: argparse.Namespace) -> int:
    result = await client.trigger_webhook(args.path, args.payload)
    status = classify_webhook_status(result.status_code).value

    console.print(f"POST {client.webhook_url(args.path)}")
    console.print(f"Status: {result.status_code} {styled(status)} ({result.elapsed_ms} ms)")
    if result.body is not None:
        body = result.body if isinstance(result.body, str) else json.dumps(result.body, indent=2)
        console.print(body)
    return 0 if result.ok else 1


async def cmd_fix_webhooks(client: N8nClient, args: argparse.Namespace) -> int:
    repairer = WebhookRepairer(
        client,
        deactivate_wait=args.deactivate_wait,
        activate_wait=args.activate_wait,
    )
    reports = await repairer.repair_all([args.workflow] if args.workflow else None)
    if not reports:
        console.print("[dim]No webhook workflows found.[/dim]")
        return 0

    table = Table(title="Webhook repair")
    table.add_column("Workflow")
    table.add_column("Result")
    table.add_column("Webhooks")
    for report in reports:
        checks = ", ".join(f"{c.path}={styled(c.status.value)}" for c in report.checks)
        table.add_row(
            f"{report.workflow_name} ({report.workflow_id})",
            styled(report.status.value),
            checks or (report.error or ""),
        )
    console.print(table)

    failed = [r for r in reports if not r.all_working and r.webhook_paths]
    return 1 if failed else 0


async def cmd_executions(client: N8nClient, args: argparse.Namespace) -> int:
    executions = await client.list_executions(args.workflow, limit=args.limit)

    table = Table(title=f"Executions ({len(executions)})")
    table.add_column("ID", style="cyan")
    table.add_column("Workflow")
    table.add_column("Status")
    table.add_column("Mode")
    table.add_column("Started")
    for execution in executions:
        table.add_row(
            execution.id,
            execution.workflow_id or "",
            execution.status or ("finished" if execution.finished else "running"),
            execution.mode or "",
            execution.started_at.strftime("%Y-%m-%d %H:%M:%S") if execution.started_at else "",
        )
    console.print(table)
    return 0


async def cmd_cleanup(client: N8nClient, args: argparse.Namespace) -> int:
    report = await WorkflowDeployer(client).cleanup(args.prefix, dry_run=args.dry_run)
    if not report.matched:
        console.print(f"[dim]No workflows start with '{args.prefix}'.[/dim]")
        return 0

    for workflow in report.matched:
        verb = "Would delete" if report.dry_run else "Deleted"
        console.print(f"{verb} {workflow.name} ({workflow.id})")
    return 0


COMMANDS = {
    "list": cmd_list,
    "deploy": cmd_deploy,
    "activate": cmd_activate,
    "deactivate": cmd_deactivate,
    "test-webhook": cmd_test_webhook,
    "fix-webhooks": cmd_fix_webhooks,
    "executions": cmd_executions,
    "cleanup": cmd_cleanup,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Clixen n8n workflows")
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List workflows")

    deploy = sub.add_parser("deploy", help="Create or update a workflow from JSON")
    deploy.add_argument("file", help="Workflow definition file")
    deploy.add_argument("--no-activate", action="store_true", help="Leave the workflow inactive")
    deploy.add_argument(
        "--test-payload", type=parse_json_arg, help="JSON to POST to each webhook after activation"
    )

    for name in ("activate", "deactivate"):
        p = sub.add_parser(name, help=f"{name.capitalize()} a workflow")
        p.add_argument("workflow_id")

    test = sub.add_parser("test-webhook", help="POST to a production webhook")
    test.add_argument("path", help="Webhook path, e.g. api/v1/weather")
    test.add_argument("--payload", type=parse_json_arg, default={}, help="JSON payload")

    fix = sub.add_parser("fix-webhooks", help="Deactivate, reactivate and test webhook workflows")
    fix.add_argument("--workflow", help="Only this workflow ID")
    fix.add_argument("--deactivate-wait", type=float, default=DEACTIVATE_WAIT_SECONDS)
    fix.add_argument("--activate-wait", type=float, default=ACTIVATE_WAIT_SECONDS)

    executions = sub.add_parser("executions", help="List recent executions")
    executions.add_argument("--workflow", help="Only this workflow ID")
    executions.add_argument("--limit", type=int, default=20)

    cleanup = sub.add_parser("cleanup", help="Delete workflows by name prefix")
    cleanup.add_argument("prefix")
    cleanup.add_argument("--dry-run", action="store_true", help="Only show what would be deleted")

    return parser


async def run(args: argparse.Namespace, client: Optional[N8nClient] = None) -> int:
    """Run one subcommand. Errors are reported and turned into exit code 1."""
    try:
        async with (client or N8nClient()) as n8n:
            return await COMMANDS[args.command](n8n, args)
    except (ClixenError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
