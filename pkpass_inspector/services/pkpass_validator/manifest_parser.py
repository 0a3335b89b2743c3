"""
Decode pass.json into a PassDescriptor.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from .archive_reader import ArchiveReader
from .errors import MalformedJSON
from .models import (
    FIELD_GROUP_KEYS,
    PASS_JSON,
    Barcode,
    FieldGroup,
    PassDescriptor,
    PassField,
    is_present,
)

logger = logging.getLogger(__name__)


def _parse_fields(items: Any) -> Tuple[PassField, ...]:
    if not isinstance(items, list):
        return ()
    fields = []
    for item in items:
        if not isinstance(item, dict):
            continue
        fields.append(PassField(
            key=item.get("key"),
            value=item.get("value"),
            label=item.get("label")
        ))
    return tuple(fields)


def _parse_barcodes(items: Any) -> Tuple[Barcode, ...]:
    if not isinstance(items, list):
        return ()
    barcodes = []
    for item in items:
        if not isinstance(item, dict):
            continue
        barcodes.append(Barcode(
            message=item.get("message"),
            format=item.get("format"),
            alt_text=item.get("altText"),
            message_encoding=item.get("messageEncoding")
        ))
    return tuple(barcodes)


def select_field_group(data: Dict[str, Any]) -> Optional[FieldGroup]:
    """Resolve the single field group: eventTicket, boardingPass, coupon, then generic."""
    for style in FIELD_GROUP_KEYS:
        group = data.get(style)
        if is_present(group):
            if not isinstance(group, dict):
                group = {}
            return FieldGroup(
                style=style,
                primary_fields=_parse_fields(group.get("primaryFields")),
                secondary_fields=_parse_fields(group.get("secondaryFields")),
                auxiliary_fields=_parse_fields(group.get("auxiliaryFields"))
            )
    return None


def parse_pass_data(data: Dict[str, Any]) -> PassDescriptor:
    """Build a PassDescriptor from an already decoded pass.json mapping."""
    return PassDescriptor(
        description=data.get("description"),
        format_version=data.get("formatVersion"),
        organization_name=data.get("organizationName"),
        pass_type_identifier=data.get("passTypeIdentifier"),
        serial_number=data.get("serialNumber"),
        team_identifier=data.get("teamIdentifier"),
        background_color=data.get("backgroundColor"),
        foreground_color=data.get("foregroundColor"),
        label_color=data.get("labelColor"),
        logo_text=data.get("logoText"),
        barcodes=_parse_barcodes(data.get("barcodes")),
        field_group=select_field_group(data),
        raw=data
    )


def parse_pass_json(raw: bytes) -> PassDescriptor:
    """Decode pass.json bytes (UTF-8 JSON object) into a PassDescriptor."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedJSON(f"Invalid pass.json or not UTF-8: {e}") from e
    if not isinstance(data, dict):
        raise MalformedJSON("pass.json must contain a JSON object")
    return parse_pass_data(data)


def load_pass_descriptor(archive: ArchiveReader) -> PassDescriptor:
    """Read and parse the pass.json entry. Raises MissingEntry if absent."""
    descriptor = parse_pass_json(archive.read_bytes(PASS_JSON))
    style = descriptor.field_group.style if descriptor.field_group else "none"
    logger.info(f"Parsed pass.json: serial={descriptor.serial_number!r}, style={style}")
    return descriptor
