"""
pass.json schema check for the mandatory top-level keys.
"""

from typing import List

from .models import REQUIRED_PASS_KEYS, PassDescriptor, ValidationResult, ValidationStatus, is_present


def _key_ok(descriptor: PassDescriptor, key: str) -> bool:
    value = descriptor.get(key)
    if key == "formatVersion":
        # bool is an int subclass; true must not pass for 1
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return value == 1
    return is_present(value)


def check_keys(descriptor: PassDescriptor) -> List[ValidationResult]:
    """One mandatory success/error result per required pass.json key."""
    results = []
    for key in REQUIRED_PASS_KEYS:
        status = ValidationStatus.SUCCESS if _key_ok(descriptor, key) else ValidationStatus.ERROR
        label = "formatVersion equals 1" if key == "formatVersion" else f"Key {key} present"
        results.append(ValidationResult(label=label, status=status, mandatory=True))
    return results
