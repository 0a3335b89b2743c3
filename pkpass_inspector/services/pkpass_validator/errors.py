"""
Exceptions raised while inspecting a .pkpass archive.

Archive-level errors abort a validation run. The others are raised inside
individual checks and turned into error results by the checker that owns them.
"""


class PKPassError(ValueError):
    """Base class for every pass inspection error."""


class ArchiveUnreadable(PKPassError):
    """The upload is not a readable ZIP archive or has no usable pass.json."""


class MissingEntry(PKPassError):
    """A named entry is absent from the archive."""

    def __init__(self, name: str):
        super().__init__(f"Missing archive entry: {name}")
        self.name = name


class MalformedJSON(PKPassError):
    """pass.json is not valid UTF-8 JSON describing an object."""


class SignatureDecodeFailure(PKPassError):
    """The signature entry is not a usable signed-data message."""


class ClaimMismatch(PKPassError):
    """An identity claim in a certificate disagrees with pass.json."""

    def __init__(self, claim: str, expected, actual, message: str = None):
        super().__init__(message or f"{claim} mismatch: pass.json has {expected!r}, certificate has {actual!r}")
        self.claim = claim
        self.expected = expected
        self.actual = actual


class CertificateExpired(PKPassError):
    """The signer certificate's notAfter is in the past."""


class CertificateNotYetValid(PKPassError):
    """The signer certificate's notBefore is in the future."""
