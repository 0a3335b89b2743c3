"""
Apple Wallet .pkpass archive validator.

Parses the ZIP container and pass.json, checks the expected entries and keys,
decodes the detached CMS signature and cross-checks the identity claims of its
certificates against pass.json.
"""

from .archive_reader import ArchiveReader
from .errors import (
    ArchiveUnreadable,
    CertificateExpired,
    CertificateNotYetValid,
    ClaimMismatch,
    MalformedJSON,
    MissingEntry,
    PKPassError,
    SignatureDecodeFailure,
)
from .manifest_parser import parse_pass_json
from .models import PassDescriptor, ValidationResult, ValidationStatus
from .preview import build_preview
from .processor import PassValidationProcessor, ValidationOutcome, validate_pkpass
from .result_aggregator import report_to_dict

__all__ = [
    "ArchiveReader",
    "ArchiveUnreadable",
    "CertificateExpired",
    "CertificateNotYetValid",
    "ClaimMismatch",
    "MalformedJSON",
    "MissingEntry",
    "PKPassError",
    "SignatureDecodeFailure",
    "parse_pass_json",
    "PassDescriptor",
    "ValidationResult",
    "ValidationStatus",
    "build_preview",
    "PassValidationProcessor",
    "ValidationOutcome",
    "validate_pkpass",
    "report_to_dict",
]
