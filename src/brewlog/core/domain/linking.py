"""
Link already-fetched entities together by locator.

Listing views fetch whole collections and join them in memory instead of
resolving every reference with its own round trip. The helpers return new
objects and never mutate their inputs, because the inputs may be shared
cache snapshots.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Roaster


def _by_locator(items: Iterable) -> dict:
    return {item.locator: item for item in items if item.locator}


def link_beans_to_roasters(
    beans: Iterable[Bean], roasters: Iterable[Roaster]
) -> list[Bean]:
    """Attach each bean's roaster from a pre-fetched roaster list.

    Beans whose roaster reference is absent or dangling come back with
    ``roaster`` set to None.
    """
    roaster_map = _by_locator(roasters)
    return [
        replace(bean, roaster=roaster_map.get(bean.roaster_ref) if bean.roaster_ref else None)
        for bean in beans
    ]


def link_brew_references(
    brews: Iterable[Brew],
    beans: Iterable[Bean],
    grinders: Iterable[Grinder],
    brewers: Iterable[Brewer],
) -> list[Brew]:
    """Attach bean, grinder and brewer objects to each brew.

    Dangling references leave the corresponding field unset.
    """
    bean_map = _by_locator(beans)
    grinder_map = _by_locator(grinders)
    brewer_map = _by_locator(brewers)
    return [
        replace(
            brew,
            bean=bean_map.get(brew.bean_ref),
            grinder=grinder_map.get(brew.grinder_ref) if brew.grinder_ref else None,
            brewer=brewer_map.get(brew.brewer_ref) if brew.brewer_ref else None,
        )
        for brew in brews
    ]
