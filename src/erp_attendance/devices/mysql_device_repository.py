from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import BiometricDevice
from .repository import DeviceRepository


class MySQLDeviceRepository(DeviceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, device_id: str) -> Optional[BiometricDevice]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT device_id, company_id, device_name, is_active FROM biometric_devices WHERE device_id=%s",
                (str(device_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return BiometricDevice(
                device_id=r["device_id"],
                company_id=int(r["company_id"]),
                device_name=r["device_name"],
                is_active=bool(r["is_active"]),
            )
