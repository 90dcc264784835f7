"""
Error kinds raised while decoding .rofl replay files.

Every class carries a ``kind`` string; the orchestrator reports that string
in ``DecodeResult.error`` so callers never need to import these classes.
"""


class ReplayDecodeError(ValueError):
    """Base class for every decode failure."""
    kind = 'ReplayDecodeError'


class FileUnreadable(ReplayDecodeError):
    kind = 'FileUnreadable'


class InvalidMagic(ReplayDecodeError):
    kind = 'InvalidMagic'


class TruncatedHeader(ReplayDecodeError):
    kind = 'TruncatedHeader'


class UnusableHeader(ReplayDecodeError):
    """Header decoded, but its offsets point outside the file."""
    kind = 'UnusableHeader'


class MetadataDecompressionFailure(ReplayDecodeError):
    kind = 'MetadataDecompressionFailure'


class MetadataParseFailure(ReplayDecodeError):
    kind = 'MetadataParseFailure'


class NoEmbeddedArrayFound(ReplayDecodeError):
    kind = 'NoEmbeddedArrayFound'


class NoPlayerData(ReplayDecodeError):
    kind = 'NoPlayerData'


class AllStrategiesExhausted(ReplayDecodeError):
    kind = 'AllStrategiesExhausted'


# Most specific first. Used to pick the error reported when every strategy fails.
SPECIFICITY = (
    NoPlayerData.kind,
    MetadataParseFailure.kind,
    MetadataDecompressionFailure.kind,
    NoEmbeddedArrayFound.kind,
    UnusableHeader.kind,
    TruncatedHeader.kind,
    InvalidMagic.kind,
)


def most_specific(errors):
    """Return the most specific error from an iterable, or None."""
    ranked = [e for e in errors if e is not None]
    if not ranked:
        return None

    def rank(err):
        kind = getattr(err, 'kind', None)
        return SPECIFICITY.index(kind) if kind in SPECIFICITY else len(SPECIFICITY)

    # min() keeps the earliest error among equally ranked ones
    return min(ranked, key=rank)
