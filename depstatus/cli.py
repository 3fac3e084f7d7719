"""CLI entry point: depstatus.

Subcommands:
    depstatus outdated [ECOSYSTEM...]      # outdated packages per ecosystem
    depstatus vulns [ECOSYSTEM...]         # known vulnerabilities per ecosystem
    depstatus annotate [ECOSYSTEM...]      # print manifest lines with status labels
    depstatus manifests                    # list manifests found in the project
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

import click

from depstatus.core.config import Settings
from depstatus.core.logging import setup_logging
from depstatus.exceptions import DepStatusError
from depstatus.models import CheckKind, CheckResult, Ecosystem, ecosystems_from_names
from depstatus.presentation import describe, title_for
from depstatus.service import DepStatusService


class TerminalAnnotationSink:
    """Collects annotations and prints them as ``path:line: label``."""

    def __init__(self, service: DepStatusService) -> None:
        self._service = service
        self.lines: dict[int, list[tuple[int, str]]] = {}

    def annotate(self, handle: int, line_index: int, span: tuple[int, int], label: str) -> None:
        self.lines.setdefault(handle, []).append((line_index, label))

    def clear(self, handle: int) -> None:
        self.lines.pop(handle, None)

    def render(self) -> None:
        for handle, annotations in sorted(self.lines.items()):
            path = self._service.locator.path_of(handle)
            for line_index, label in sorted(annotations):
                click.echo(f"{path}:{line_index + 1}: {label}")


def _service(ctx: click.Context) -> DepStatusService:
    return ctx.obj["service"]


def _targets(service: DepStatusService, names: tuple[str, ...]) -> list[Ecosystem]:
    if not names:
        return service.present_ecosystems()
    try:
        return ecosystems_from_names(names)
    except DepStatusError as e:
        raise click.BadParameter(str(e), param_hint="ECOSYSTEM") from e


def _result_to_dict(result: CheckResult) -> dict:
    return {
        "ecosystem": result.ecosystem.value,
        "kind": result.kind.value,
        "error": result.error,
        "failure": result.failure.value if result.failure else None,
        "packages": {name: asdict(record) for name, record in result.packages.items()},
        "display": result.display,
    }


def _report(results: list[CheckResult], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([_result_to_dict(r) for r in results], indent=2))
    else:
        for result in results:
            notice = describe(result)
            if not result.ok or not result.display:
                click.echo(notice.message, err=notice.level == "error")
                continue
            click.echo(title_for(result.ecosystem, result.kind))
            for line in result.display:
                click.echo(f"  {line}")
            click.echo("")

    if any(not r.ok for r in results):
        sys.exit(1)


def _run_checks(
    service: DepStatusService, kind: CheckKind, names: tuple[str, ...], as_json: bool
) -> None:
    targets = _targets(service, names)
    if not targets:
        click.echo(f"No supported manifests found in {service.settings.project_root}")
        return
    results = asyncio.run(service.check_all(kind, targets))
    _report(results, as_json)


@click.group()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: $DEPSTATUS_PROJECT_ROOT or the current directory)",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, root: Path | None, verbose: bool) -> None:
    """depstatus: outdated and vulnerable dependencies across ecosystems."""
    setup_logging("DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    if "service" in ctx.obj:
        return
    try:
        settings = Settings.from_env(root)
    except DepStatusError as e:
        raise click.UsageError(str(e)) from e
    ctx.obj["service"] = DepStatusService(settings)


@main.command("outdated")
@click.argument("ecosystems", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def outdated(ctx: click.Context, ecosystems: tuple[str, ...], as_json: bool) -> None:
    """List outdated packages (python, go, npm, composer, cargo)."""
    _run_checks(_service(ctx), CheckKind.OUTDATED, ecosystems, as_json)


@main.command("vulns")
@click.argument("ecosystems", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def vulns(ctx: click.Context, ecosystems: tuple[str, ...], as_json: bool) -> None:
    """List packages with known vulnerabilities."""
    _run_checks(_service(ctx), CheckKind.VULNERABILITIES, ecosystems, as_json)


@main.command("annotate")
@click.argument("ecosystems", nargs=-1)
@click.option("--vulns", "with_vulns", is_flag=True, help="Also run vulnerability scans")
@click.pass_context
def annotate(ctx: click.Context, ecosystems: tuple[str, ...], with_vulns: bool) -> None:
    """Print manifest lines that declare outdated or vulnerable packages."""
    service = _service(ctx)
    service.locator.discover()
    targets = _targets(service, ecosystems)
    if not targets:
        click.echo(f"No supported manifests found in {service.settings.project_root}")
        return

    async def _check() -> list[CheckResult]:
        results = await service.check_all(CheckKind.OUTDATED, targets)
        if with_vulns:
            results += await service.check_all(CheckKind.VULNERABILITIES, targets)
        return results

    results = asyncio.run(_check())
    for result in results:
        if not result.ok:
            click.echo(describe(result).message, err=True)

    sink = TerminalAnnotationSink(service)
    total = sum(service.presenter.annotate(eco, sink) for eco in targets)
    sink.render()
    click.echo(f"Annotated {total} line(s)")

    if any(not r.ok for r in results):
        sys.exit(1)


@main.command("manifests")
@click.pass_context
def manifests(ctx: click.Context) -> None:
    """List the manifests found in the project root."""
    service = _service(ctx)
    service.locator.discover()
    found = service.refresh_manifest_cache()
    total = 0
    for ecosystem, entries in found.items():
        for entry in entries:
            click.echo(f"{ecosystem.value:<10} {entry.absolute_path}")
            total += 1
    if not total:
        click.echo(f"No supported manifests found in {service.settings.project_root}")


if __name__ == "__main__":
    main()
