"""
manifest.json digest check.

Recomputes the SHA-1 of every entry listed in manifest.json and compares it
to the recorded digest. Entries that are in the archive but not in the
manifest are reported as warnings.
"""

import hashlib
import json
import logging
from typing import List

from jsonschema import ValidationError, validate

from .archive_reader import ArchiveReader
from .errors import ArchiveUnreadable, MissingEntry
from .models import MANIFEST_JSON, MANIFEST_SCHEMA, SIGNATURE, ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

UNLISTED_ENTRIES = {MANIFEST_JSON, SIGNATURE}


def _sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def check_manifest_digests(archive: ArchiveReader) -> List[ValidationResult]:
    """Shape result for manifest.json, one result per listed entry, one warning per unlisted entry."""
    try:
        manifest = json.loads(archive.read_text(MANIFEST_JSON))
        validate(instance=manifest, schema=MANIFEST_SCHEMA)
    except (MissingEntry, ArchiveUnreadable) as e:
        return [ValidationResult(label=f"manifest.json unreadable: {e}", status=ValidationStatus.ERROR)]
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return [ValidationResult(label=f"manifest.json is not valid JSON: {e}", status=ValidationStatus.ERROR)]
    except ValidationError as e:
        return [ValidationResult(label=f"manifest.json malformed: {e.message}", status=ValidationStatus.ERROR)]

    results = [ValidationResult(label=f"manifest.json lists {len(manifest)} entries",
                                status=ValidationStatus.SUCCESS)]

    for name, digest in manifest.items():
        if not archive.has_entry(name):
            results.append(ValidationResult(label=f"Digest for {name}: entry missing",
                                            status=ValidationStatus.ERROR))
            continue
        try:
            actual = _sha1(archive.read_bytes(name))
        except ArchiveUnreadable as e:
            results.append(ValidationResult(label=f"Digest for {name}: {e}", status=ValidationStatus.ERROR))
            continue
        if actual == digest.lower():
            results.append(ValidationResult(label=f"Digest for {name} matches",
                                            status=ValidationStatus.SUCCESS))
        else:
            logger.warning(f"Digest mismatch for {name}")
            results.append(ValidationResult(label=f"Digest for {name} does not match",
                                            status=ValidationStatus.ERROR))

    for name in archive.list_entries():
        if name in UNLISTED_ENTRIES or name.endswith("/") or name in manifest:
            continue
        results.append(ValidationResult(label=f"{name} not listed in manifest.json",
                                        status=ValidationStatus.WARNING, mandatory=False))
    return results
