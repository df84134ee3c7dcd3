"""Port for paginated listing documents."""

from __future__ import annotations

from typing import Protocol


class PageSourcePort(Protocol):
    """Supplies the documents behind one paginated listing.

    The first page is an HTML document; follow-ups are continuation
    responses.  Both are returned as text.
    """

    async def fetch_initial(self) -> str:
        ...

    async def fetch_continuation(self, token: str) -> str:
        ...
