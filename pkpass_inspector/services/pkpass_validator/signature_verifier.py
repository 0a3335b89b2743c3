"""
Signature verification for .pkpass archives.

The `signature` entry is a detached CMS/PKCS#7 signed-data message over
manifest.json. This module decodes it, locates the signer certificate and the
Pass Type ID certificate among the bundled certificates, and cross-checks the
identity claims they carry against pass.json.

It checks identity claims only. The signature bytes are not verified against
manifest.json and the chain is not validated against a pinned Apple root:
issuer and WWDR generation are reported from name substrings.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from asn1crypto import cms as asn1_cms
from asn1crypto import core as asn1_core
from cryptography import x509
from cryptography.x509.oid import NameOID, ObjectIdentifier

from .archive_reader import ArchiveReader
from .errors import (
    CertificateExpired,
    CertificateNotYetValid,
    ClaimMismatch,
    SignatureDecodeFailure,
)
from .models import SIGNATURE, PassDescriptor, ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

# Apple's Pass Type Identifier certificate extension
PASS_TYPE_ID_OID = "1.2.840.113635.100.6.1.16"

PASS_TYPE_CN_PREFIXES = ("Pass Type ID:", "Pass Type ID with NFC:")

WWDR_GENERATIONS = ("G4", "G3")
UNKNOWN_GENERATION = "Unknown"


@dataclass
class SignedMessage:
    """Decoded signed-data message: the signer's certificate plus every bundled certificate."""

    signer_certificate: x509.Certificate
    certificates: List[x509.Certificate]


def _first_attribute(name: x509.Name, oid: ObjectIdentifier) -> str:
    attributes = name.get_attributes_for_oid(oid)
    if not attributes:
        return ""
    value = attributes[0].value
    return value if isinstance(value, str) else value.decode("utf-8", "replace")


def subject_common_name(cert: x509.Certificate) -> str:
    return _first_attribute(cert.subject, NameOID.COMMON_NAME)


def subject_organizational_unit(cert: x509.Certificate) -> str:
    return _first_attribute(cert.subject, NameOID.ORGANIZATIONAL_UNIT_NAME)


def issuer_common_name(cert: x509.Certificate) -> str:
    return _first_attribute(cert.issuer, NameOID.COMMON_NAME)


def _find_signer(signer_info: asn1_cms.SignerInfo, certificates: list) -> Optional[int]:
    """Index of the bundled certificate matching the signer identifier."""
    sid = signer_info["sid"]
    if sid.name == "issuer_and_serial_number":
        issuer = sid.chosen["issuer"]
        serial = sid.chosen["serial_number"].native
        for index, cert in enumerate(certificates):
            if cert.serial_number == serial and cert.issuer == issuer:
                return index
    elif sid.name == "subject_key_identifier":
        key_id = sid.chosen.native
        for index, cert in enumerate(certificates):
            if cert.key_identifier == key_id:
                return index
    return None


def _load_signed_data(raw: bytes) -> Tuple[asn1_cms.SignedData, list]:
    """Parse the ContentInfo wrapper; return the signed-data and its bundled certificates."""
    content_info = asn1_cms.ContentInfo.load(raw)
    content_type = content_info["content_type"].native
    if content_type != "signed_data":
        raise SignatureDecodeFailure(f"Expected signed-data, got {content_type}")

    signed_data = content_info["content"]
    bundled = []
    cert_set = signed_data["certificates"]
    if not isinstance(cert_set, asn1_core.Void):
        for choice in cert_set:
            if choice.name == "certificate":
                bundled.append(choice.chosen)
    return signed_data, bundled


def decode_signed_message(raw: bytes) -> SignedMessage:
    """
    Decode a BER/DER signed-data message.

    Raises SignatureDecodeFailure when the bytes are not signed-data, carry no
    signer info, or the signer's certificate is not bundled.
    """
    if not raw:
        raise SignatureDecodeFailure("Signature entry is empty")
    try:
        signed_data, bundled = _load_signed_data(raw)
        signer_infos = signed_data["signer_infos"]
        signer_index = _find_signer(signer_infos[0], bundled) if len(signer_infos) else None
        certificates = [x509.load_der_x509_certificate(cert.dump()) for cert in bundled]
    except SignatureDecodeFailure:
        raise
    except (ValueError, TypeError, KeyError) as e:
        raise SignatureDecodeFailure(f"Not a signed-data message: {e}") from e

    if signer_index is None:
        raise SignatureDecodeFailure("Signer certificate missing")

    signer_certificate = certificates[signer_index]
    logger.debug(f"Signed message carries {len(certificates)} certificate(s), "
                 f"signer CN={subject_common_name(signer_certificate)!r}")
    return SignedMessage(signer_certificate=signer_certificate, certificates=certificates)


def find_pass_type_certificate(certificates: List[x509.Certificate]) -> Optional[x509.Certificate]:
    """First certificate whose subject CN starts with a Pass Type ID prefix."""
    for cert in certificates:
        if subject_common_name(cert).startswith(PASS_TYPE_CN_PREFIXES):
            return cert
    return None


def decode_apple_extension_string(raw: bytes) -> str:
    """
    Decode the value of an Apple string extension.

    The value is a DER UTF8String; the two leading tag/length bytes are dropped
    when the value is longer than two bytes, otherwise it is used as-is. This
    is a heuristic, not an ASN.1 parse: long-form lengths are not handled.
    """
    if len(raw) > 2:
        raw = raw[2:]
    return raw.decode("utf-8", "replace")


def read_pass_type_claim(cert: x509.Certificate, oid: str = PASS_TYPE_ID_OID) -> Optional[str]:
    """The pass type identifier embedded in the certificate extension, or None."""
    try:
        extension = cert.extensions.get_extension_for_oid(ObjectIdentifier(oid))
    except x509.ExtensionNotFound:
        return None
    value = extension.value
    if isinstance(value, x509.UnrecognizedExtension):
        return decode_apple_extension_string(value.value)
    return decode_apple_extension_string(value.public_bytes())


def infer_wwdr_generation(organizational_unit: str, issuer_cn: str) -> str:
    """
    Guess the WWDR intermediate generation from name substrings.

    G4 is checked before G3, so a name mentioning both reports G4. This is a
    label for the report, not a cryptographic guarantee.
    """
    for generation in WWDR_GENERATIONS:
        if generation in (organizational_unit or "") or generation in (issuer_cn or ""):
            return generation
    return UNKNOWN_GENERATION


def check_pass_type(message: SignedMessage, descriptor: PassDescriptor,
                    oid: str = PASS_TYPE_ID_OID) -> str:
    expected = descriptor.pass_type_identifier
    cert = find_pass_type_certificate(message.certificates)
    if cert is None:
        raise ClaimMismatch("Pass type identifier", expected, None)
    claim = read_pass_type_claim(cert, oid)
    if claim != expected:
        raise ClaimMismatch("Pass type identifier", expected, claim)
    return f"Pass type identifier matches certificate ({claim})"


def check_team_identifier(message: SignedMessage, descriptor: PassDescriptor) -> str:
    expected = descriptor.team_identifier
    claim = subject_organizational_unit(message.signer_certificate)
    if claim != expected:
        raise ClaimMismatch("Team identifier", expected, claim)
    return f"Team identifier matches certificate ({claim})"


def check_issuer(message: SignedMessage) -> str:
    issuer_cn = issuer_common_name(message.signer_certificate)
    if "Apple" not in issuer_cn:
        raise ClaimMismatch("Issuer", "Apple", issuer_cn,
                            message=f"Signer certificate not issued by Apple (issuer CN {issuer_cn!r})")
    return f"Signer certificate issued by Apple ({issuer_cn})"


def check_validity(message: SignedMessage, now: datetime) -> str:
    cert = message.signer_certificate
    not_before = cert.not_valid_before_utc
    not_after = cert.not_valid_after_utc
    if now <= not_before:
        raise CertificateNotYetValid(f"Signer certificate not valid before {not_before.isoformat()}")
    if now >= not_after:
        raise CertificateExpired(f"Signer certificate expired on {not_after.isoformat()}")
    return f"Signer certificate valid until {not_after.date().isoformat()}"


def _mandatory(check: Callable[[], str]) -> ValidationResult:
    try:
        label = check()
    except (ClaimMismatch, CertificateExpired, CertificateNotYetValid) as e:
        logger.warning(f"Signature check failed: {e}")
        return ValidationResult(label=str(e), status=ValidationStatus.ERROR, mandatory=True)
    return ValidationResult(label=label, status=ValidationStatus.SUCCESS, mandatory=True)


def _failed(reason) -> List[ValidationResult]:
    return [ValidationResult(
        label=f"Cryptographic check failed: {reason}",
        status=ValidationStatus.ERROR,
        mandatory=True
    )]


def verify_signature(archive: ArchiveReader, descriptor: PassDescriptor,
                     now: Optional[datetime] = None,
                     pass_type_oid: str = PASS_TYPE_ID_OID) -> List[ValidationResult]:
    """
    Run the signature checks in report order.

    Any decode failure, or any unexpected error while reading the
    certificates, replaces the whole category with a single error result.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        message = decode_signed_message(archive.read_bytes(SIGNATURE))

        results = [
            _mandatory(lambda: check_pass_type(message, descriptor, pass_type_oid)),
            _mandatory(lambda: check_team_identifier(message, descriptor)),
            _mandatory(lambda: check_issuer(message)),
            _mandatory(lambda: check_validity(message, now)),
        ]

        generation = infer_wwdr_generation(
            subject_organizational_unit(message.signer_certificate),
            issuer_common_name(message.signer_certificate)
        )
    except Exception as e:
        logger.error(f"❌ Cryptographic check failed: {e}")
        return _failed(e)

    status = ValidationStatus.WARNING if generation == UNKNOWN_GENERATION else ValidationStatus.SUCCESS
    results.append(ValidationResult(label=f"WWDR generation: {generation}", status=status, mandatory=False))
    return results
