"""
Pass validation service used by the API and the CLI.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .pkpass_validator import (
    PassValidationProcessor,
    ValidationOutcome,
    build_preview,
    report_to_dict,
)
from .pkpass_validator.signature_verifier import PASS_TYPE_ID_OID

logger = logging.getLogger(__name__)


class ValidationService:
    """Validates uploaded .pkpass bytes and shapes the response"""

    def __init__(self, pass_type_oid: str = PASS_TYPE_ID_OID, verify_manifest: bool = False):
        self.processor = PassValidationProcessor(pass_type_oid=pass_type_oid,
                                                 verify_manifest=verify_manifest)
        logger.info(f"Validation service ready (pass type OID {pass_type_oid}, "
                    f"manifest digests {'on' if verify_manifest else 'off'})")

    def validate(self, pkpass_bytes: bytes, now: Optional[datetime] = None) -> ValidationOutcome:
        """
        Validate .pkpass bytes.

        Raises:
            ArchiveUnreadable: empty input, or not a valid .pkpass archive
        """
        logger.info(f"Validating archive of {len(pkpass_bytes)} bytes")
        return self.processor.validate(pkpass_bytes, now=now)

    def validate_to_dict(self, pkpass_bytes: bytes, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Validate and return the JSON-ready response body."""
        outcome = self.validate(pkpass_bytes, now=now)
        return {
            "ok": True,
            "valid": outcome.valid,
            "pass": outcome.descriptor.to_dict(),
            "preview": build_preview(outcome.descriptor),
            "report": report_to_dict(outcome.report),
        }
