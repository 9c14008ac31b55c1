"""
Registry Errors
Failure taxonomy shared by the store, the synthesizer and the HTTP layer.

Client errors carry a message that is safe to return verbatim. Everything
else is an internal fault: logged, then surfaced as an opaque 500.
"""


class RegistryError(Exception):
    """Base class for all registry failures."""
    status_code = 500


class TagNotFound(RegistryError):
    """The requested tag does not exist."""
    status_code = 404

    def __init__(self, tag: str):
        super().__init__(f"Could not find a matching tag: {tag}")
        self.tag = tag


class ClientEncodingUnsupported(RegistryError):
    """The client did not declare that it accepts gzip."""
    status_code = 400

    def __init__(self, accept_encoding: str = ""):
        super().__init__("Must accept gzip encoding")
        self.accept_encoding = accept_encoding


class StoreOpenError(RegistryError):
    """The repository could not be opened or cloned."""


class CommitResolutionError(RegistryError):
    """A tag exists but its target commit cannot be loaded."""


class TreeReadError(RegistryError):
    """A commit tree or one of its blobs could not be read."""


class ArchiveWriteError(RegistryError):
    """Writing an archive to its sink failed."""


class ManifestError(RegistryError):
    """The versions manifest of an asset cache is missing or invalid."""
