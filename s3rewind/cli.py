# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind CLI - Restore a versioned bucket to a point in time.

Examples:
    s3rewind restore --bucket my-bucket --time 2024-03-01T12:00:00Z
    s3rewind restore --bucket my-bucket --time "2024-03-01 12:00" --dry-run
    s3rewind restore --bucket my-bucket --time 2024-03-01T12:00:00Z \\
        --endpoint-url http://localhost:9000 --continue-on-error
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from s3rewind.builder import create_config
from s3rewind.config import ApplyErrorPolicy
from s3rewind.core import RestoreResult, run_restore
from s3rewind.errors import explain_missing_bucket
from s3rewind.exceptions import (
    ApplyError,
    ConfigurationError,
    DeadlineExceededError,
    EnumerationError,
    S3RewindError,
)

app = typer.Typer(
    name="s3rewind",
    help="Restore a versioned S3 bucket to the state it had at a point in time",
    add_completion=False,
)

console = Console()


def _result_to_dict(result: RestoreResult) -> dict:
    return {
        "operation_id": result.operation_id,
        "bucket": result.bucket,
        "target_time": result.target_time.isoformat(),
        "dry_run": result.dry_run,
        "records_read": result.records_read,
        "keys_reconciled": result.keys_reconciled,
        "restored": result.restored_count,
        "deleted": result.deleted_count,
        "failed": dict(sorted(result.apply_result.failed.items())),
        "skipped": result.skipped_keys,
        "duration_seconds": result.duration_seconds,
    }


def _print_summary(result: RestoreResult) -> None:
    verb = "Would restore" if result.dry_run else "Restored"
    if result.ok:
        console.print(
            f"[green]✓ {verb} {escape(result.bucket)} to "
            f"{result.target_time.isoformat()}[/green]"
        )
    else:
        console.print(
            f"[red]✗ Restore of {escape(result.bucket)} to "
            f"{result.target_time.isoformat()} did not complete[/red]"
        )
    console.print(f"  Operation: [cyan]{result.operation_id}[/cyan]")

    table = Table(title="Restore Summary")
    table.add_column("Item", style="green")
    table.add_column("Count", style="cyan", justify="right")
    table.add_row("Records read", str(result.records_read))
    table.add_row("Keys reconciled", str(result.keys_reconciled))
    table.add_row("Restored", str(result.restored_count))
    table.add_row("Deleted", str(result.deleted_count))
    table.add_row("Failed", str(len(result.failed_keys)))
    table.add_row("Skipped", str(len(result.skipped_keys)))
    console.print(table)

    for key, error in sorted(result.apply_result.failed.items()):
        console.print(f"[red]Failed:[/red] {escape(key)}: {escape(error)}")


def _fail(message: str, json_output: bool, code: int = 1) -> None:
    if json_output:
        print(json.dumps({"success": False, "error": message}))
    else:
        console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code)


@app.command()
def restore(
    bucket: Optional[str] = typer.Option(
        None, "--bucket", "-b", envvar="S3_BUCKET", help="required: S3 bucket to process"
    ),
    time: Optional[str] = typer.Option(
        None,
        "--time",
        "-t",
        envvar="S3REWIND_TARGET_TIME",
        help="required: time to restore to, e.g. 2006-01-02T15:04:05Z (no zone means UTC)",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None, "--endpoint-url", envvar="S3REWIND_ENDPOINT_URL", help="S3 compatible endpoint url"
    ),
    region: str = typer.Option("us-east-1", "--region", envvar="AWS_REGION", help="AWS region"),
    concurrency: int = typer.Option(
        10, "--concurrency", "-c", min=1, help="Maximum concurrent copy/delete operations"
    ),
    continue_on_error: bool = typer.Option(
        False, "--continue-on-error", help="Apply every key and report all failures at the end"
    ),
    deadline: Optional[float] = typer.Option(
        None, "--deadline", min=0.001, help="Give up after this many seconds (applied keys are kept)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without changing it"),
    debug: bool = typer.Option(False, "--debug", help="Use to enable debug logging"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Restore the bucket to the time specified.

    Every key is set to the version it had at that time; keys that did not
    exist then (or were already deleted) are deleted.
    """
    try:
        if not bucket:
            raise ConfigurationError(explain_missing_bucket())
        config = create_config(
            bucket=bucket,
            target_time=time,
            region=region,
            endpoint_url=endpoint_url,
            max_concurrent_ops=concurrency,
            error_policy=(
                ApplyErrorPolicy.CONTINUE if continue_on_error else ApplyErrorPolicy.ABORT
            ),
            dry_run=dry_run,
            debug=debug,
            deadline_seconds=deadline,
        )
    except ConfigurationError as e:
        _fail(f"Invalid configuration: {e}", json_output)

    try:
        result = asyncio.run(run_restore(config))
    except (ApplyError, DeadlineExceededError) as e:
        if json_output:
            print(json.dumps({"success": False, "error": e.message, **_result_to_dict(e.result)}, indent=2))
        else:
            console.print(f"[red]Error:[/red] {escape(e.message)}")
            _print_summary(e.result)
        raise typer.Exit(1)
    except EnumerationError as e:
        _fail(f"Failed listing versions, bucket unchanged: {e}", json_output)
    except S3RewindError as e:
        _fail(str(e), json_output)

    if json_output:
        print(json.dumps({"success": True, **_result_to_dict(result)}, indent=2))
    else:
        _print_summary(result)


@app.command()
def version():
    """Show version information."""
    from s3rewind import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]s3rewind[/bold]", f"v{__version__}")
    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
