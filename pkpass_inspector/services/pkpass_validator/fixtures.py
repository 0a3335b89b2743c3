"""
Builders for .pkpass archives used by the test suite.

Creates a throwaway WWDR-like CA and Pass Type ID certificate, writes
manifest.json, signs it as a detached DER PKCS#7 message and zips the result,
the same way a real pass is packaged.
"""

import hashlib
import json
import struct
import zipfile
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from io import BytesIO
from typing import Dict, Iterable, List, Optional

from asn1crypto import cms as asn1_cms
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs7
from cryptography.x509.oid import NameOID, ObjectIdentifier

from .signature_verifier import PASS_TYPE_ID_OID

PASS_TYPE_ID = "pass.com.example.concert"
TEAM_ID = "ABCDE12345"
WWDR_CN = "Apple Worldwide Developer Relations Certification Authority"

FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

DEFAULT_ASSETS = ["icon.png", "icon@2x.png", "icon@3x.png"]


def sample_pass_json(**overrides) -> Dict:
    """A complete event ticket pass.json; keyword arguments replace top-level keys."""
    data = {
        "formatVersion": 1,
        "passTypeIdentifier": PASS_TYPE_ID,
        "teamIdentifier": TEAM_ID,
        "organizationName": "Example Events",
        "description": "Concert ticket",
        "serialNumber": "TICKET_0001",
        "backgroundColor": "rgb(0, 0, 0)",
        "foregroundColor": "rgb(255, 255, 255)",
        "labelColor": "rgb(200, 200, 200)",
        "logoText": "Example Live",
        "barcodes": [{
            "format": "PKBarcodeFormatQR",
            "message": "TICKET_0001",
            "messageEncoding": "iso-8859-1",
            "altText": "0001"
        }],
        "eventTicket": {
            "primaryFields": [{"key": "event", "label": "Event", "value": "Symphony Night"}],
            "secondaryFields": [
                {"key": "venue", "label": "Venue", "value": "Main Hall"},
                {"key": "date", "label": "Date", "value": "2026-12-01"}
            ],
            "auxiliaryFields": [
                {"key": "row", "label": "Row", "value": 5},
                {"key": "seat", "label": "Seat", "value": "12A"},
                {"key": "gate", "label": "Gate", "value": "C"}
            ]
        }
    }
    data.update(overrides)
    return data


@lru_cache(maxsize=None)
def _key(name: str) -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


def _name(common_name: str, organizational_unit: Optional[str] = None,
           organization: Optional[str] = None, uid: Optional[str] = None) -> x509.Name:
    attributes = []
    if uid:
        attributes.append(x509.NameAttribute(NameOID.USER_ID, uid))
    attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    if organizational_unit:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, organizational_unit))
    if organization:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    return x509.Name(attributes)


def apple_string_extension(value: str) -> bytes:
    """DER UTF8String, as Apple encodes the pass type identifier extension."""
    encoded = value.encode("utf-8")
    return bytes([0x0C, len(encoded)]) + encoded


def make_wwdr_certificate(common_name: str = WWDR_CN, organizational_unit: str = "G4") -> x509.Certificate:
    key = _key("wwdr")
    subject = _name(common_name, organizational_unit, "Apple Inc.")
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=365))
        .not_valid_after(now + timedelta(days=3650))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


def make_leaf_certificate(issuer: x509.Certificate, common_name: str,
                          team_id: str = TEAM_ID,
                          pass_type_id: Optional[str] = PASS_TYPE_ID,
                          key_name: str = "pass",
                          not_before: Optional[datetime] = None,
                          not_after: Optional[datetime] = None) -> x509.Certificate:
    """A leaf certificate issued by `issuer`; carries the pass type extension unless pass_type_id is None."""
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name, team_id, "Example Events", uid=pass_type_id))
        .issuer_name(issuer.subject)
        .public_key(_key(key_name).public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=365))
    )
    if pass_type_id is not None:
        builder = builder.add_extension(
            x509.UnrecognizedExtension(ObjectIdentifier(PASS_TYPE_ID_OID), apple_string_extension(pass_type_id)),
            critical=False
        )
    return builder.sign(_key("wwdr"), hashes.SHA256())


def make_pass_certificate(issuer: x509.Certificate, pass_type_id: str = PASS_TYPE_ID,
                          team_id: str = TEAM_ID, nfc: bool = False, **kwargs) -> x509.Certificate:
    prefix = "Pass Type ID with NFC:" if nfc else "Pass Type ID:"
    return make_leaf_certificate(issuer, f"{prefix} {pass_type_id}", team_id=team_id,
                                 pass_type_id=pass_type_id, **kwargs)


def sign_manifest(manifest: bytes, signer: x509.Certificate, extra_certs: Iterable[x509.Certificate] = (),
                  key_name: str = "pass", include_certs: bool = True) -> bytes:
    """Detached DER PKCS#7 signature over manifest.json."""
    builder = pkcs7.PKCS7SignatureBuilder().set_data(manifest).add_signer(signer, _key(key_name), hashes.SHA256())
    for cert in extra_certs:
        builder = builder.add_certificate(cert)
    options = [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary]
    if not include_certs:
        options.append(pkcs7.PKCS7Options.NoCerts)
    return builder.sign(serialization.Encoding.DER, options)


def signed_data_without_signers(certificates: List[x509.Certificate]) -> bytes:
    """A signed-data message carrying certificates but no signer info."""
    signed_data = asn1_cms.SignedData({
        "version": "v1",
        "digest_algorithms": [],
        "encap_content_info": {"content_type": "data"},
        "certificates": [
            asn1_cms.CertificateChoices(
                name="certificate",
                value=asn1_x509.Certificate.load(cert.public_bytes(serialization.Encoding.DER))
            )
            for cert in certificates
        ],
        "signer_infos": [],
    })
    return asn1_cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()


def build_manifest(files: Dict[str, bytes]) -> bytes:
    """manifest.json for every file, excluding manifest.json and signature."""
    manifest = {
        name: hashlib.sha1(data).hexdigest()
        for name, data in files.items()
        if name not in ("manifest.json", "signature")
    }
    return json.dumps(manifest, ensure_ascii=False, indent=2).encode("utf-8")


def zip_pkpass(files: Dict[str, bytes]) -> bytes:
    out = BytesIO()
    with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return out.getvalue()


def corrupt_entry(archive_bytes: bytes, name: str) -> bytes:
    """Overwrite the start of an entry's compressed data so it no longer inflates."""
    with zipfile.ZipFile(BytesIO(archive_bytes)) as zf:
        info = zf.getinfo(name)
    data = bytearray(archive_bytes)
    name_len, extra_len = struct.unpack("<HH", data[info.header_offset + 26:info.header_offset + 30])
    start = info.header_offset + 30 + name_len + extra_len
    # 0xFF opens a deflate block with the reserved block type
    length = min(10, info.compress_size)
    data[start:start + length] = b"\xff" * length
    return bytes(data)


def build_pkpass(pass_data=None, signer: Optional[x509.Certificate] = None,
                 extra_certs: Optional[List[x509.Certificate]] = None,
                 signature: Optional[bytes] = None, omit: Iterable[str] = (),
                 extra_files: Optional[Dict[str, bytes]] = None) -> bytes:
    """
    Package a .pkpass archive.

    Args:
        pass_data: pass.json as a dict, or raw bytes (defaults to sample_pass_json())
        signer: signing certificate (defaults to a Pass Type ID certificate for the sample pass)
        extra_certs: certificates bundled next to the signer (defaults to the WWDR certificate)
        signature: raw signature entry, replacing the generated one
        omit: entry names to leave out of the archive
        extra_files: additional entries, added before manifest.json is computed
    """
    if pass_data is None:
        pass_data = sample_pass_json()
    if isinstance(pass_data, dict):
        pass_data = json.dumps(pass_data, ensure_ascii=False, indent=2).encode("utf-8")

    files = {"pass.json": pass_data}
    for name in DEFAULT_ASSETS:
        files[name] = FAKE_PNG
    files.update(extra_files or {})
    files["manifest.json"] = build_manifest(files)

    if signature is None:
        wwdr = make_wwdr_certificate()
        if signer is None:
            signer = make_pass_certificate(wwdr)
        if extra_certs is None:
            extra_certs = [wwdr]
        signature = sign_manifest(files["manifest.json"], signer, extra_certs)
    files["signature"] = signature

    return zip_pkpass({name: data for name, data in files.items() if name not in set(omit)})
