from .client import ContentEntry, GitHubClient
from .inputs import parse_specifier

__all__ = ["ContentEntry", "GitHubClient", "parse_specifier"]
