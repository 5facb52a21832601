# main.py
"""
Entry Point — PixelMatch

Purpose
-------
Run a design-vs-website comparison from the command line and print the
findings, or inspect stored comparisons and a project's activity feed when
the database gateway is enabled (PIXELMATCH_USE_DATABASE=1).

Usage
-----
    python main.py compare design.png website.png --project-name "Homepage Redesign"
    python main.py compare design.png website.png --provider secondary --json
    python main.py show 3
    python main.py activities 1
"""

from __future__ import annotations

import argparse
import json
import sys

from pixelmatch.config import Settings, load_settings, resolve_preference
from pixelmatch.core.errors import PixelmatchError
from pixelmatch.core.log import configure_logging
from pixelmatch.orchestrators import ReviewWorkflow
from pixelmatch.schemas.models import ComparisonResult
from pixelmatch.storage import StorageGateway, get_storage


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="PixelMatch design-vs-website comparison")
    p.add_argument("--log-file", type=str, default=None, help="Rotating log file (overrides PIXELMATCH_LOG_FILE).")
    p.add_argument("--log-level", type=str, default=None, help="Logging level (overrides PIXELMATCH_LOG_LEVEL).")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("compare", help="Compare a design mockup with a website screenshot.")
    c.add_argument("design", type=str, help="Path to the design mockup image.")
    c.add_argument("website", type=str, help="Path to the website screenshot.")
    c.add_argument("--project-name", type=str, default="Untitled Project", help="Project name (created if missing).")
    c.add_argument(
        "--provider",
        type=str,
        default=None,
        help='Provider preference: "primary", "secondary" or a slot provider name.',
    )
    c.add_argument("--json", action="store_true", help="Print the full result as JSON.")

    s = sub.add_parser("show", help="Show a stored comparison with discrepancies and comments.")
    s.add_argument("comparison_id", type=int)

    a = sub.add_parser("activities", help="List a project's activity feed, newest first.")
    a.add_argument("project_id", type=int)
    return p.parse_args(argv)


def _settings_for(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {"log_file": args.log_file, "log_level": args.log_level}
    provider = getattr(args, "provider", None)
    if provider:
        overrides["provider_preference"] = resolve_preference(provider, load_settings().secondary_provider)
    return load_settings(**overrides)


def _find_or_create_project(workflow: ReviewWorkflow, storage: StorageGateway, name: str) -> int:
    for project in storage.get_projects():
        if project.name == name:
            return project.id
    return workflow.create_project(name).id


def print_result(result: ComparisonResult) -> None:
    c = result.comparison
    print(f"Comparison #{c.id} ({c.name}) - {c.status.value}")
    if c.used_fallback:
        print("!! AI analysis unavailable: showing generic fallback findings, not image-derived results.")
    print(f"Summary: {c.description}")
    for d in result.discrepancies:
        box = d.coordinates
        print(
            f"  [{d.priority.value:<6}] {d.type.value:<10} {d.title} "
            f"@ ({box.x:g},{box.y:g}) {box.width:g}x{box.height:g} {box.shape.value}"
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = _settings_for(args)
    configure_logging(settings.log_level, settings.log_file)

    storage = get_storage(settings)
    workflow = ReviewWorkflow(storage, settings=settings)

    try:
        if args.command == "compare":
            project_id = _find_or_create_project(workflow, storage, args.project_name)
            result = workflow.orchestrator.run_comparison(args.design, args.website, project_id)
            if args.json:
                print(result.model_dump_json(indent=2))
            else:
                print_result(result)
        elif args.command == "show":
            detail = workflow.get_comparison_detail(args.comparison_id)
            print(detail.model_dump_json(indent=2))
        elif args.command == "activities":
            feed = workflow.list_activities(args.project_id)
            print(json.dumps([a.model_dump(mode="json") for a in feed], indent=2))
    except PixelmatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
