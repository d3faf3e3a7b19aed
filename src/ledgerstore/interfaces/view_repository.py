"""View repository interface.

A view ("projection") is a read-optimized document folded from events and
stored under a `view_instance_id`. Each stored view carries a version:

- version 0 means "not stored yet";
- every successful update increments the version by exactly 1;
- an update is accepted only if the caller's expected version equals the
  stored one (compare-and-swap), otherwise `OptimisticLockError` is raised.

Callers must `load` before they `update`. An update that matches zero rows is
therefore always a lost race, never a missing row.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeVar

V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class ViewContext:
    """The version a caller observed for one view instance."""

    view_instance_id: str
    version: int = 0

    def advance(self) -> ViewContext:
        """Context valid for the next update after a successful one."""
        return ViewContext(self.view_instance_id, self.version + 1)


class LoadedView(NamedTuple, Generic[V]):
    """A stored view together with the context needed to update it."""

    view: V
    context: ViewContext

    @property
    def version(self) -> int:
        """Stored version of the view."""
        return self.context.version


class ViewRepository(abc.ABC, Generic[V]):
    """Loads and stores one materialized view per view instance."""

    view_name: str

    @abc.abstractmethod
    def load(self, view_instance_id: str) -> LoadedView[V] | None:
        """Return the stored view and its context, or None if absent.

        Raises:
            DeserializationError: if the stored payload cannot be decoded.
        """

    def get(self, view_instance_id: str) -> V | None:
        """Return only the stored view, or None if absent."""
        loaded = self.load(view_instance_id)
        return loaded.view if loaded else None

    @abc.abstractmethod
    def update(self, view_instance_id: str, view: V, expected_version: int) -> int:
        """Store ``view`` if the stored version equals ``expected_version``.

        Args:
            view_instance_id: Key of the view instance.
            view: The new view value.
            expected_version: The version observed by the last `load`
                (0 if the view did not exist).

        Raises:
            OptimisticLockError: if another writer updated or created the view first.
            ValueError: if ``expected_version`` is negative.

        Returns:
            The new stored version (``expected_version + 1``).
        """

    def update_view(self, view: V, context: ViewContext) -> ViewContext:
        """Store ``view`` using a context returned by `load`.

        Returns:
            The advanced context, valid for the next update.
        """
        self.update(context.view_instance_id, view, context.version)
        return context.advance()
