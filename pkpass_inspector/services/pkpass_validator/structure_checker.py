"""
Archive structure check: expected entries present by exact name.
"""

from typing import Iterable, List, Tuple

from .models import MANIFEST_JSON, PASS_JSON, SIGNATURE, ValidationResult, ValidationStatus

# (entry name, mandatory) in report order
EXPECTED_ENTRIES: List[Tuple[str, bool]] = [
    (MANIFEST_JSON, True),
    (PASS_JSON, True),
    (SIGNATURE, True),
    ("icon.png", True),
    ("icon@2x.png", True),
    ("icon@3x.png", False),
]


def check_structure(entry_names: Iterable[str]) -> List[ValidationResult]:
    """One result per expected entry: success, error (mandatory) or info (optional)."""
    present = set(entry_names)
    results = []
    for name, mandatory in EXPECTED_ENTRIES:
        if name in present:
            status = ValidationStatus.SUCCESS
        elif mandatory:
            status = ValidationStatus.ERROR
        else:
            status = ValidationStatus.INFO
        results.append(ValidationResult(label=f"Archive entry {name}", status=status, mandatory=mandatory))
    return results
