"""
Command-line access to the forms API.

Usage:
    python -m viewer.cli templates
    python -m viewer.cli templates --json
    python -m viewer.cli create-template --form-code 1040 --tax-year 2025 \\
        --title "U.S. Individual Income Tax Return" --pages 2
    python -m viewer.cli create-template --from-json template.json
    python -m viewer.cli resolve <submission-id>
    python -m viewer.cli --api http://forms:8080/api/v1 templates

Every command talks to the same upstream API as the web viewer; nothing is
computed locally.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Callable

from utils.config import AppConfig
from utils.formatting import format_date
from viewer.client import ApiError, FormsApiClient


def _print_table(headers: list[str], rows: list[list[str]]) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(line)
    print("-" * len(line))
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))


def cmd_templates(client: FormsApiClient, args: argparse.Namespace) -> int:
    templates = client.get_forms()
    if args.json:
        print(json.dumps([t.model_dump() for t in templates], indent=2))
        return 0
    if not templates:
        print("No form templates.")
        return 0
    _print_table(
        ["ID", "Form", "Year", "Pages", "Size (pt)", "Updated", "Title"],
        [[t.id, t.form_code, str(t.tax_year), str(t.page_count),
          f"{t.page_width:g}x{t.page_height:g}", format_date(t.updated_at), t.title]
         for t in templates],
    )
    return 0


def cmd_create_template(client: FormsApiClient, args: argparse.Namespace) -> int:
    if args.from_json:
        data = json.loads(Path(args.from_json).read_text())
    else:
        if not args.form_code or args.tax_year is None:
            print("ERROR: --form-code and --tax-year are required without --from-json",
                  file=sys.stderr)
            return 2
        data = {
            "form_code": args.form_code,
            "tax_year": args.tax_year,
            "title": args.title or args.form_code,
            "page_count": args.pages,
            "page_width": args.width,
            "page_height": args.height,
        }
    created = client.create_form(data)
    print(f"Created template {created.id}: {created.option_label} {created.title}")
    return 0


def cmd_resolve(client: FormsApiClient, args: argparse.Namespace) -> int:
    values = client.resolve_fields(args.submission_id)
    if args.json:
        print(json.dumps([v.model_dump() for v in values], indent=2))
        return 0
    if not values:
        print("No fields resolved.")
        return 0
    _print_table(
        ["Page", "Field", "Value"],
        [[str(v.page_number), v.field_key, v.text] for v in values],
    )
    return 0


COMMANDS: dict[str, Callable[[FormsApiClient, argparse.Namespace], int]] = {
    "templates": cmd_templates,
    "create-template": cmd_create_template,
    "resolve": cmd_resolve,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m viewer.cli",
        description="Inspect form templates and submissions through the forms API.",
    )
    parser.add_argument("--api", default=None,
                        help="Forms API base URL (default: FORMS_API_BASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("templates", help="List form templates")
    p_list.add_argument("--json", action="store_true", help="Print raw JSON")

    p_create = sub.add_parser("create-template", help="Create a form template")
    p_create.add_argument("--form-code", help="Form code, e.g. 1040")
    p_create.add_argument("--tax-year", type=int, help="Tax year, e.g. 2025")
    p_create.add_argument("--title", default="", help="Form title")
    p_create.add_argument("--pages", type=int, default=1, help="Page count (default: 1)")
    p_create.add_argument("--width", type=float, default=612,
                          help="Page width in points (default: 612)")
    p_create.add_argument("--height", type=float, default=792,
                          help="Page height in points (default: 792)")
    p_create.add_argument("--from-json", metavar="FILE",
                          help="Create from a JSON template body instead")

    p_resolve = sub.add_parser("resolve", help="Show resolved values of a submission")
    p_resolve.add_argument("submission_id")
    p_resolve.add_argument("--json", action="store_true", help="Print raw JSON")
    return parser


def main(argv: list[str] | None = None,
         client: FormsApiClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    if client is None:
        cfg = AppConfig.from_env()
        if args.api:
            cfg.api_base_url = args.api.rstrip("/")
        client = FormsApiClient(cfg.client_config())

    with client:
        try:
            return COMMANDS[args.command](client, args)
        except ApiError as exc:
            status = f" ({exc.status_code})" if exc.status_code else ""
            print(f"ERROR{status}: {exc.message}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
