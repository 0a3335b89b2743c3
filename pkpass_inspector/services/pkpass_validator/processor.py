"""
Validation pipeline: archive bytes -> (PassDescriptor, report).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .archive_reader import ArchiveReader
from .errors import ArchiveUnreadable, MalformedJSON, MissingEntry
from .manifest_digest import check_manifest_digests
from .manifest_parser import load_pass_descriptor
from .models import PassDescriptor, Report
from .result_aggregator import aggregate, has_errors
from .schema_checker import check_keys
from .signature_verifier import PASS_TYPE_ID_OID, verify_signature
from .structure_checker import check_structure

logger = logging.getLogger(__name__)

INVALID_ARCHIVE_MESSAGE = "This file is not a valid .pkpass archive."


@dataclass(frozen=True)
class ValidationOutcome:
    """The parsed pass and its report, produced together by one validation run."""

    descriptor: PassDescriptor
    report: Report

    @property
    def valid(self) -> bool:
        return not has_errors(self.report)


class PassValidationProcessor:
    """Runs every check over one archive. Holds configuration only, never per-archive state."""

    def __init__(self, pass_type_oid: str = PASS_TYPE_ID_OID, verify_manifest: bool = False):
        self.pass_type_oid = pass_type_oid
        self.verify_manifest = verify_manifest

    def validate(self, archive_bytes: bytes, now: Optional[datetime] = None) -> ValidationOutcome:
        """
        Validate a .pkpass archive.

        Args:
            archive_bytes: Raw .pkpass file content
            now: Reference time for the certificate validity window (defaults to current UTC time)

        Returns:
            ValidationOutcome with the parsed pass.json and the report

        Raises:
            ArchiveUnreadable: the bytes are not a ZIP archive, or pass.json is missing or malformed
        """
        try:
            archive = ArchiveReader(archive_bytes)
        except ArchiveUnreadable as e:
            logger.error(f"❌ Archive rejected: {e}")
            raise ArchiveUnreadable(INVALID_ARCHIVE_MESSAGE) from e

        with archive:
            try:
                descriptor = load_pass_descriptor(archive)
            except (ArchiveUnreadable, MissingEntry, MalformedJSON) as e:
                logger.error(f"❌ Archive rejected: {e}")
                raise ArchiveUnreadable(INVALID_ARCHIVE_MESSAGE) from e

            structure = check_structure(archive.list_entries())
            keys = check_keys(descriptor)
            signature = verify_signature(archive, descriptor, now=now, pass_type_oid=self.pass_type_oid)
            manifest = check_manifest_digests(archive) if self.verify_manifest else None

        outcome = ValidationOutcome(descriptor=descriptor, report=aggregate(structure, keys, signature, manifest))
        logger.info(f"Validation finished for serial {descriptor.serial_number!r}: "
                    f"{'valid' if outcome.valid else 'invalid'}")
        return outcome


def validate_pkpass(archive_bytes: bytes, now: Optional[datetime] = None, **options) -> ValidationOutcome:
    """Convenience wrapper around PassValidationProcessor.validate."""
    return PassValidationProcessor(**options).validate(archive_bytes, now=now)
