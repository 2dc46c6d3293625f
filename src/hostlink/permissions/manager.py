"""Capability grants.

The host asks the permission manager whether capabilities are granted
before running work that needs them. On hosts with no interactive grant
flow the set of granted capabilities comes from configuration.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from hostlink.domain.models import Capability

logger = logging.getLogger(__name__)


class PermissionManager(ABC):
    @abstractmethod
    async def ensure(
        self, capabilities: list[Capability], interactive: bool = False
    ) -> dict[Capability, bool]:
        """Report (and, if ``interactive``, request) each capability.

        Returns:
            A map from every requested capability to whether it is granted.
        """
        ...


class StaticPermissionManager(PermissionManager):
    """Grants exactly the capabilities it was configured with."""

    def __init__(self, granted: Iterable[Capability] = ()) -> None:
        self._granted = frozenset(granted)

    @property
    def granted(self) -> frozenset[Capability]:
        return self._granted

    async def ensure(
        self, capabilities: list[Capability], interactive: bool = False
    ) -> dict[Capability, bool]:
        if interactive:
            logger.debug("Interactive grant requested; no prompt available on this host")
        return {cap: cap in self._granted for cap in capabilities}
