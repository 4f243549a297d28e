from __future__ import annotations

from typing import Optional, Protocol

from .model import BiometricDevice


class DeviceRepository(Protocol):
    def get_by_id(self, device_id: str) -> Optional[BiometricDevice]:
        raise NotImplementedError
