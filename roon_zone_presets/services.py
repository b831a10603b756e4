"""Interfaces of the core-side services the extension talks to.

The extension does not implement the core's wire protocol.  Whatever
connects to the core hands in objects that satisfy these protocols:

* :class:`RoonCore` — the paired core, from which the status and
  transport services are obtained.
* :class:`StatusService` — the one-line status shown in the core's
  extension list.
* :class:`TransportService` — zone/output subscriptions, grouping and
  volume commands.
* :class:`SettingsSubscribers` — pushes a re-rendered settings layout to
  every open settings dialog.

All calls are coroutines.  They are fire-and-forget from the
extension's point of view: replies and failures are the implementer's
business.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class StatusService(Protocol):
    async def set_status(self, message: str, is_error: bool) -> None:
        ...


@runtime_checkable
class TransportService(Protocol):
    async def subscribe_zones(self) -> None:
        ...

    async def subscribe_outputs(self) -> None:
        ...

    async def get_zones(self) -> None:
        """Request a fresh zone list; it arrives as a zones event."""

    async def group_outputs(self, output_ids: Sequence[str]) -> None:
        """Group *output_ids*; the first one becomes the primary output."""

    async def ungroup_outputs(self, output_ids: Sequence[str]) -> None:
        ...

    async def change_volume(self, output_id: str, how: str, value: int) -> None:
        """Change the volume of *output_id*; *how* is e.g. ``"absolute"``."""


@runtime_checkable
class SettingsSubscribers(Protocol):
    async def update_settings(self, layout: Dict[str, Any]) -> None:
        """Send a ``Changed`` notification carrying *layout*."""


@runtime_checkable
class RoonCore(Protocol):
    display_name: str
    display_version: str

    def get_status(self) -> Optional[StatusService]:
        ...

    def get_transport(self) -> Optional[TransportService]:
        ...
