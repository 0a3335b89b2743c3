"""
Merge checker outputs into the report mapping.
"""

from typing import Any, Dict, List, Optional

from .models import Report, ValidationResult


def aggregate(structure: List[ValidationResult], keys: List[ValidationResult],
              signature: List[ValidationResult],
              manifest: Optional[List[ValidationResult]] = None) -> Report:
    """Group results by category. Order within each category is kept as produced."""
    report = {
        "structure": list(structure),
        "keys": list(keys),
        "signature": list(signature),
    }
    if manifest is not None:
        report["manifest"] = list(manifest)
    return report


def has_errors(report: Report) -> bool:
    """True when any mandatory check failed."""
    return any(result.failed and result.mandatory
               for results in report.values() for result in results)


def report_to_dict(report: Report) -> Dict[str, List[Dict[str, Any]]]:
    return {category: [result.to_dict() for result in results]
            for category, results in report.items()}
