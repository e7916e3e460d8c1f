"""Helpers for objects that release resources exactly once."""

from __future__ import annotations

from typing import Protocol


class ReleasedError(RuntimeError):
    """The resource was already released."""

    def __init__(self) -> None:
        super().__init__("resource already released")


class ReleaserAlreadySetError(RuntimeError):
    """A releaser is already attached to the resource."""

    def __init__(self) -> None:
        super().__init__("releaser already defined")


class Releaser(Protocol):
    def release(self) -> None: ...


class BasicReleaser:
    """Releases once, calling an optional attached releaser."""

    def __init__(self) -> None:
        self._releaser: Releaser | None = None
        self._released = False

    def released(self) -> bool:
        """Return whether :meth:`release` has been called."""
        return self._released

    def release(self) -> None:
        """Release the resource; later calls do nothing."""
        if self._released:
            return
        if self._releaser is not None:
            self._releaser.release()
            self._releaser = None
        self._released = True

    def set_releaser(self, releaser: Releaser | None) -> None:
        """Attach ``releaser`` to be called on release; ``None`` clears it."""
        if self._released:
            raise ReleasedError()
        if self._releaser is not None and releaser is not None:
            raise ReleaserAlreadySetError()
        self._releaser = releaser

    def __enter__(self) -> BasicReleaser:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class NoopReleaser:
    """A releaser that frees nothing and only counts how often it was called."""

    def __init__(self) -> None:
        self.release_count = 0

    def release(self) -> None:
        """Record the call; there is no resource to free."""
        self.release_count += 1