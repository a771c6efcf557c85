"""Exception types raised by the evidence engine."""


class EvidenceError(Exception):
    """Base class for all evidence engine errors."""


class ExtractionFailure(EvidenceError):
    """The document's own text could not be produced. Fatal to a scan."""


class MatcherFailure(EvidenceError):
    """Cross-document matching failed; treated as zero internal matches."""


class ExternalProviderFailure(EvidenceError):
    """External lookup failed or quota was exhausted; treated as zero external matches."""

    def __init__(self, message: str, quota_exhausted: bool = False):
        super().__init__(message)
        self.quota_exhausted = quota_exhausted


class OracleFailure(EvidenceError):
    """The text classification oracle could not produce a verdict."""


class PersistenceFailure(EvidenceError):
    """A fingerprint or a scan result could not be stored."""


class ScanInProgressError(EvidenceError):
    """A scan was requested for a document that is already being scanned."""

    def __init__(self, document_id: str):
        super().__init__(f"Document {document_id} is already being scanned")
        self.document_id = document_id
