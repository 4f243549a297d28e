from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BiometricDevice:
    device_id: str
    company_id: int
    device_name: str
    is_active: bool = True
