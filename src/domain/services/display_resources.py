from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable

from src.domain.entities.image import ImageAsset
from src.domain.services.data_uri import DataUriCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayHandle:
    handle_id: str
    asset_id: str
    url: str  # data URI for the asset


class DisplayResourcePool:
    """Reference-counted display handles, one per distinct asset.

    Holders (history entries, in-flight requests) call `acquire` / `release`.
    A handle is only built on the first `materialize` call, and is released
    exactly once, when the last holder lets go.
    """

    def __init__(self, on_release: Callable[[DisplayHandle], None] | None = None) -> None:
        self._refs: dict[str, int] = {}
        self._handles: dict[str, DisplayHandle] = {}
        self._on_release = on_release
        self._counter = itertools.count(1)

    def acquire(self, asset: ImageAsset) -> None:
        self._refs[asset.id] = self._refs.get(asset.id, 0) + 1

    def release(self, asset: ImageAsset) -> None:
        count = self._refs.get(asset.id, 0)
        if count <= 0:
            raise ValueError(f"Release of unreferenced asset {asset.id[:12]}")
        if count > 1:
            self._refs[asset.id] = count - 1
            return
        del self._refs[asset.id]
        handle = self._handles.pop(asset.id, None)
        if handle is None:
            return
        logger.debug("Releasing display handle %s for asset %s", handle.handle_id, asset.id[:12])
        if self._on_release is not None:
            self._on_release(handle)

    def materialize(self, asset: ImageAsset) -> DisplayHandle:
        if self._refs.get(asset.id, 0) <= 0:
            raise ValueError(f"Cannot display unreferenced asset {asset.id[:12]}")
        handle = self._handles.get(asset.id)
        if handle is None:
            handle = DisplayHandle(
                handle_id=f"display-{next(self._counter)}",
                asset_id=asset.id,
                url=DataUriCodec.encode(asset),
            )
            self._handles[asset.id] = handle
        return handle

    def ref_count(self, asset: ImageAsset) -> int:
        return self._refs.get(asset.id, 0)

    def is_materialized(self, asset: ImageAsset) -> bool:
        return asset.id in self._handles

    @property
    def live_handles(self) -> int:
        return len(self._handles)
