"""Helpers for handing a mocked AsyncSession to code that opens its own sessions."""

from __future__ import annotations

from typing import Any, Callable


class _SingleSessionContext:
    def __init__(self, session: Any) -> None:
        self._session = session
        self.entered = 0

    async def __aenter__(self) -> Any:
        self.entered += 1
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


def make_session_factory(session: Any) -> Callable[[], _SingleSessionContext]:
    """Return an async_sessionmaker-compatible callable that always yields `session`."""
    context = _SingleSessionContext(session)

    def _session_factory() -> _SingleSessionContext:
        return context

    _session_factory.context = context
    return _session_factory
