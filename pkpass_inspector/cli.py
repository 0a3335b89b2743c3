"""
Command line inspector for .pkpass files.

Usage:
    pkpass-inspect path/to/pass.pkpass
    pkpass-inspect path/to/pass.pkpass --json
    pkpass-inspect path/to/pass.pkpass --verify-manifest

Exit codes: 0 valid, 1 mandatory checks failed, 2 not a valid archive, 3 file not found.
"""

import json
import logging
import sys
from pathlib import Path

import click

from .config import Settings
from .services.pkpass_validator import ArchiveUnreadable
from .services.validation_service import ValidationService

STATUS_MARKS = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️ ",
    "info": "ℹ️ ",
}


def _print_report(result: dict) -> None:
    preview = result["preview"]
    click.echo(f"{preview['organizationName']} - {preview['title']} ({preview['style'] or 'no field group'})")
    for category, items in result["report"].items():
        click.echo(f"\n{category.upper()}")
        for item in items:
            optional = "" if item["mandatory"] else " (optional)"
            click.echo(f"  {STATUS_MARKS.get(item['status'], '?')} {item['label']}{optional}")
    click.echo(f"\n{'Valid' if result['valid'] else 'Invalid'} .pkpass archive")


@click.command()
@click.argument("pkpass_path", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
@click.option("--verify-manifest", is_flag=True, default=None,
              help="Also recompute the manifest.json SHA-1 digests.")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging.")
def main(pkpass_path, as_json, verify_manifest, verbose):
    """Validate a .pkpass archive and print its report."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    path = Path(pkpass_path)
    if not path.is_file():
        click.echo(f"❌ File not found: {pkpass_path}", err=True)
        sys.exit(3)

    service = ValidationService(
        pass_type_oid=settings.pass_type_oid,
        verify_manifest=settings.verify_manifest if verify_manifest is None else verify_manifest
    )
    try:
        result = service.validate_to_dict(path.read_bytes())
    except ArchiveUnreadable as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        _print_report(result)
    sys.exit(0 if result["valid"] else 1)


if __name__ == "__main__":
    main()
