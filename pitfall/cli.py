"""
Pitfall command-line interface.

Analyzes one or more source-model files produced by a contract parser and
prints the findings as text or JSON.

Exit codes: 0 no critical findings, 1 critical findings present,
2 a unit could not be analyzed or the invocation was invalid.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pitfall.config import VERSION, settings
from pitfall.core.rule_engine import RULE_REGISTRY
from pitfall.core.source_loader import read_source_file
from pitfall.engine.pipeline import Analyzer
from pitfall.models.finding_models import Severity
from pitfall.models.report_models import BatchReport

logger = logging.getLogger("pitfall.cli")

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

# Timing varies between runs; keep JSON output byte-identical for identical input
_VOLATILE_FIELDS = {"duration_ms": True, "units": {"__all__": {"duration_ms"}}}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pitfall",
        description="Static security-pattern checker for smart-contract source models",
    )
    parser.add_argument("paths", nargs="*", help="Source-model JSON files to analyze")
    parser.add_argument(
        "--format", choices=("text", "json"), default=settings.output_format,
        help="Output format (default: %(default)s)",
    )
    parser.add_argument("--suppressions", metavar="FILE", help="Suppression list file")
    parser.add_argument(
        "--disable", action="append", default=[], metavar="RULE",
        help="Skip a rule (can be used multiple times)",
    )
    parser.add_argument(
        "--event-prefix", action="append", metavar="PREFIX",
        help="Recognised event-name prefix (can be used multiple times)",
    )
    parser.add_argument("--jobs", type=int, help="Units analyzed in parallel")
    parser.add_argument("--budget", type=float, metavar="SECONDS", help="Per-unit time budget")
    parser.add_argument("--list-rules", action="store_true", help="List registered rules and exit")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("--version", action="version", version=f"pitfall {VERSION}")
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def print_rules(console: Console) -> None:
    table = Table(title="Registered rules")
    table.add_column("Rule")
    table.add_column("Severity")
    table.add_column("Title")
    for descriptor in RULE_REGISTRY.values():
        style = SEVERITY_STYLES[descriptor.severity]
        table.add_row(
            descriptor.id, f"[{style}]{descriptor.severity.value}[/{style}]", descriptor.title
        )
    console.print(table)


def print_text_report(report: BatchReport, console: Console) -> None:
    for unit in report.units:
        where = f" ({escape(unit.source)})" if unit.source else ""
        if unit.status == "failed":
            console.print(
                f"[bold]{escape(unit.unit)}[/bold]{where}: [red]NOT ANALYZED[/red] "
                f"{unit.error.kind}: {escape(unit.error.message)}"
            )
            continue

        console.print(f"[bold]{escape(unit.unit)}[/bold]{where}: {len(unit.findings)} findings")
        for finding in unit.findings:
            style = SEVERITY_STYLES[finding.severity]
            console.print(
                f"  [{style}]{finding.severity.value:<8}[/{style}] {finding.rule_id}  "
                f"{escape(finding.location.render())}  {escape(finding.message)}"
            )
        for diagnostic in unit.diagnostics:
            console.print(
                f"  [magenta]rule error[/magenta] {diagnostic.rule_id}: "
                f"{diagnostic.error_type}: {escape(diagnostic.message)}"
            )

    counts = report.severity_counts()
    failed = sum(1 for u in report.units if u.status == "failed")
    console.print()
    console.print(
        f"Summary: {len(report.units)} units, {failed} failed, "
        f"{counts['critical']} critical, {counts['warning']} warning, {counts['info']} info"
        + (" [yellow](cancelled)[/yellow]" if report.cancelled else "")
    )


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    console = Console(soft_wrap=True, highlight=False)

    if args.list_rules:
        print_rules(console)
        return 0
    if not args.paths:
        parser.print_usage(sys.stderr)
        console.print("[red]Error: at least one path is required[/red]")
        return 2

    overrides: dict = {"disabled_rules": [*settings.disabled_rules, *args.disable]}
    if args.suppressions:
        overrides["suppression_file"] = args.suppressions
    if args.event_prefix:
        overrides["event_prefixes"] = args.event_prefix
    if args.jobs is not None:
        overrides["batch_workers"] = max(1, args.jobs)
    if args.budget is not None:
        overrides["unit_budget_seconds"] = args.budget
    config = settings.model_copy(update=overrides)

    try:
        analyzer = Analyzer.from_settings(config)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 2

    inputs = [item for path in args.paths for item in read_source_file(path)]
    try:
        report = analyzer.analyze_batch(inputs)
    except KeyboardInterrupt:
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        return 130

    if args.format == "json":
        payload = report.model_dump(mode="json", by_alias=True, exclude=_VOLATILE_FIELDS)
        print(json.dumps(payload, indent=2))
    else:
        print_text_report(report, console)

    return report.exit_code()


if __name__ == "__main__":
    sys.exit(main())
