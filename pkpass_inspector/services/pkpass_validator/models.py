"""
Data models and schemas for the pass archive validator.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


PASS_JSON = "pass.json"
MANIFEST_JSON = "manifest.json"
SIGNATURE = "signature"

# Mandatory top-level pass.json keys, in report order
REQUIRED_PASS_KEYS = [
    "description", "formatVersion", "organizationName",
    "passTypeIdentifier", "serialNumber", "teamIdentifier"
]

# Field group keys in resolution priority order
FIELD_GROUP_KEYS = ["eventTicket", "boardingPass", "coupon", "generic"]


def is_present(value: Any) -> bool:
    """
    Presence test used for pass.json values.

    Empty strings, zero, False and null count as absent. Objects and arrays
    count as present even when empty, as they do in the Wallet web tooling.
    """
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


class ValidationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single check, as shown in the report."""

    label: str
    status: ValidationStatus
    mandatory: bool = True

    @property
    def failed(self) -> bool:
        return self.status == ValidationStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "status": self.status.value,
            "mandatory": self.mandatory,
        }


@dataclass(frozen=True)
class PassField:
    key: str
    value: Any
    label: Optional[str] = None


@dataclass(frozen=True)
class FieldGroup:
    """The single field group of a pass, tagged with its style key."""

    style: str
    primary_fields: Tuple[PassField, ...] = ()
    secondary_fields: Tuple[PassField, ...] = ()
    auxiliary_fields: Tuple[PassField, ...] = ()


@dataclass(frozen=True)
class Barcode:
    message: str
    format: str
    alt_text: Optional[str] = None
    message_encoding: Optional[str] = None


@dataclass(frozen=True)
class PassDescriptor:
    """
    Typed view of a decoded pass.json.

    Known keys are exposed as attributes exactly as they appear in the JSON
    (no normalization), so any of them may be None when the pass omits it.
    The decoded mapping is kept so the pass can be re-serialized unchanged.
    """

    description: Any = None
    format_version: Any = None
    organization_name: Any = None
    pass_type_identifier: Any = None
    serial_number: Any = None
    team_identifier: Any = None
    background_color: Optional[str] = None
    foreground_color: Optional[str] = None
    label_color: Optional[str] = None
    logo_text: Optional[str] = None
    barcodes: Tuple[Barcode, ...] = ()
    field_group: Optional[FieldGroup] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a top-level pass.json key by its JSON name."""
        return self.raw.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Return the decoded pass.json mapping (a copy)."""
        return copy.deepcopy(self.raw)


Report = Dict[str, List[ValidationResult]]


# JSON Schema for manifest.json: entry name -> SHA-1 hex digest
MANIFEST_SCHEMA = {
    "type": "object",
    "minProperties": 1,
    "additionalProperties": {
        "type": "string",
        "pattern": "^[0-9a-fA-F]{40}$",
        "description": "SHA-1 hex digest of the archive entry"
    }
}
