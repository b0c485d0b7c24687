"""Port: repository cache — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Any, Protocol

from repoverse.domain.entities import DetailFields


class RepositoryCacheStore(Protocol):
    """Per-user key/value store with a *basic* list and per-repo *detail* entries."""

    def get_basic(self, user: str) -> list[dict[str, Any]] | None:
        """Return the cached raw repository list, or ``None`` if absent/expired."""
        ...

    def set_basic(self, user: str, repos: list[dict[str, Any]]) -> None:
        """Cache the raw repository list (last write wins)."""
        ...

    def get_detail(self, user: str, repo_name: str) -> DetailFields | None:
        """Return cached measured details, or ``None`` if absent/expired."""
        ...

    def set_detail(self, user: str, repo_name: str, fields: DetailFields) -> None:
        """Cache measured details for one repository."""
        ...

    def get_all_detail(self, user: str) -> dict[str, DetailFields]:
        """Return every fresh detail entry for *user*, evicting expired ones."""
        ...
