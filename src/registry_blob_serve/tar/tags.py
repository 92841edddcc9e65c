"""Repository tag parsing for docker save archives."""

from typing import Iterable


def parse_repository_tag(repo_tag: str) -> tuple[str, str]:
    """Parse a repository:tag string into its components.

    Args:
        repo_tag: Repository tag string (e.g., "nginx:alpine",
            "localhost:5000/myapp:latest")

    Returns:
        (repository, tag) tuple; the tag defaults to "latest"

    Examples:
        >>> parse_repository_tag("localhost:5000/myapp:latest")
        ('localhost:5000/myapp', 'latest')
        >>> parse_repository_tag("localhost:5000/myapp")
        ('localhost:5000/myapp', 'latest')
    """
    repository, sep, tag = repo_tag.rpartition(":")
    # A colon inside the registry host is not a tag separator
    if not sep or "/" in tag:
        return repo_tag, "latest"
    return repository, tag or "latest"


def aliases_from_repo_tags(repo_tags: Iterable[str]) -> list[str]:
    """Return the distinct tags of repo_tags in order of first appearance."""
    aliases: list[str] = []
    for repo_tag in repo_tags:
        _, tag = parse_repository_tag(repo_tag)
        if tag not in aliases:
            aliases.append(tag)
    return aliases
