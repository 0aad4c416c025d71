"""
Store Protocol

The application-facing CRUD contract. Handlers and views program against
``StoreProtocol`` so the repository-backed store can be swapped for another
backend without touching callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Roaster
from brewlog.core.domain.requests import (
    CreateBeanRequest,
    CreateBrewerRequest,
    CreateBrewRequest,
    CreateGrinderRequest,
    CreateRoasterRequest,
)


@dataclass
class StoreSnapshot:
    """Every collection needed to render a management or profile view."""

    beans: list[Bean] = field(default_factory=list)
    roasters: list[Roaster] = field(default_factory=list)
    grinders: list[Grinder] = field(default_factory=list)
    brewers: list[Brewer] = field(default_factory=list)
    brews: list[Brew] = field(default_factory=list)


class StoreProtocol(Protocol):
    """
    Uniform create/get/list/update/delete contract per entity kind.

    Error Handling:
        - create/update/delete failures propagate; no partial effect is assumed
        - list operations skip individual malformed records
        - ``fetch_all`` fails as a whole if any collection fails
    """

    # Brew operations
    async def create_brew(self, request: CreateBrewRequest) -> Brew: ...

    async def get_brew(self, rkey: str) -> Brew: ...

    async def list_brews(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Brew]: ...

    async def update_brew(self, rkey: str, request: CreateBrewRequest) -> None: ...

    async def delete_brew(self, rkey: str) -> None: ...

    # Bean operations
    async def create_bean(self, request: CreateBeanRequest) -> Bean: ...

    async def get_bean(self, rkey: str) -> Bean: ...

    async def list_beans(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Bean]: ...

    async def update_bean(self, rkey: str, request: CreateBeanRequest) -> None: ...

    async def delete_bean(self, rkey: str) -> None: ...

    # Roaster operations
    async def create_roaster(self, request: CreateRoasterRequest) -> Roaster: ...

    async def get_roaster(self, rkey: str) -> Roaster: ...

    async def list_roasters(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Roaster]: ...

    async def update_roaster(self, rkey: str, request: CreateRoasterRequest) -> None: ...

    async def delete_roaster(self, rkey: str) -> None: ...

    # Grinder operations
    async def create_grinder(self, request: CreateGrinderRequest) -> Grinder: ...

    async def get_grinder(self, rkey: str) -> Grinder: ...

    async def list_grinders(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Grinder]: ...

    async def update_grinder(self, rkey: str, request: CreateGrinderRequest) -> None: ...

    async def delete_grinder(self, rkey: str) -> None: ...

    # Brewer operations
    async def create_brewer(self, request: CreateBrewerRequest) -> Brewer: ...

    async def get_brewer(self, rkey: str) -> Brewer: ...

    async def list_brewers(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Brewer]: ...

    async def update_brewer(self, rkey: str, request: CreateBrewerRequest) -> None: ...

    async def delete_brewer(self, rkey: str) -> None: ...

    # Bulk assembly
    async def fetch_all(self) -> StoreSnapshot: ...
