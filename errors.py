"""Exception types raised by the imposition core.

Every error is fatal to the job being planned; nothing is retried.
"""


class ImpositionError(Exception):
    """Base class for all imposition failures."""


class InvalidSpecError(ImpositionError):
    """Sheet, sizing or DPI values that cannot produce a layout."""


class DoesNotFitError(ImpositionError):
    """An item is larger than the usable sheet area."""

    def __init__(self, message="Sticker does not fit on the sheet with the configured gap/margin."):
        super().__init__(message)


class MixedSizesError(ImpositionError):
    """Grid engine invoked with assets of differing pixel dimensions."""


class UnregisteredEngineError(ImpositionError):
    """Requested engine identifier has no matching engine."""


class MissingAssetError(ImpositionError):
    """A quantity entry references an asset absent from the catalog."""


class MissingSizingError(ImpositionError):
    """Shelf engine item without per-asset sizing."""
