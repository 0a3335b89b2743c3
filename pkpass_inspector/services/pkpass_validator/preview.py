"""
Presentation model for a parsed pass.

Mirrors the layout rules of the Wallet preview card: primary fields across the
top, up to four secondary/auxiliary fields below, and the first barcode only.
"""

from typing import Any, Dict, List, Optional

from .models import Barcode, PassDescriptor, PassField

DEFAULT_BACKGROUND = "#fff"
DEFAULT_FOREGROUND = "#000"
MAX_DETAIL_FIELDS = 4


def _field_dict(f: PassField) -> Dict[str, Any]:
    return {"key": f.key, "label": f.label, "value": f.value}


def _barcode_dict(barcode: Optional[Barcode]) -> Optional[Dict[str, Any]]:
    if barcode is None or not barcode.message:
        return None
    return {
        "message": barcode.message,
        "format": barcode.format,
        "altText": barcode.alt_text,
    }


def build_preview(descriptor: PassDescriptor) -> Dict[str, Any]:
    """Build the data a renderer needs to draw the pass card."""
    group = descriptor.field_group
    primary: List[Dict[str, Any]] = []
    details: List[Dict[str, Any]] = []
    if group is not None:
        primary = [_field_dict(f) for f in group.primary_fields]
        details = [_field_dict(f) for f in (group.secondary_fields + group.auxiliary_fields)][:MAX_DETAIL_FIELDS]

    return {
        "style": group.style if group else None,
        "backgroundColor": descriptor.background_color or DEFAULT_BACKGROUND,
        "foregroundColor": descriptor.foreground_color or DEFAULT_FOREGROUND,
        "labelColor": descriptor.label_color,
        "organizationName": descriptor.organization_name,
        "title": descriptor.logo_text or descriptor.description,
        "primaryFields": primary,
        "detailFields": details,
        "barcode": _barcode_dict(descriptor.barcodes[0] if descriptor.barcodes else None),
    }
