from __future__ import annotations


class ProtoGatherError(Exception):
    """Base error for the proto aggregation engine."""


class ValidationError(ProtoGatherError):
    """Raised when user input or configuration is invalid."""


class InvalidSpecifierError(ValidationError):
    """Raised when a repository specifier string is malformed."""


class NotFoundError(ProtoGatherError):
    """Raised when a requested remote path or repository is not found."""


class TransportError(ProtoGatherError):
    """Raised when the GitHub API or a git clone fails."""


class FilesystemError(ProtoGatherError):
    """Raised when local filesystem IO fails."""


class UnsupportedEntryError(ProtoGatherError):
    """Raised when a remote path is neither a proto file nor a directory."""
