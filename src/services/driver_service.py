"""
Driver records: creation and lookup.
"""

from __future__ import annotations

import uuid
from typing import List

from src.domain.exceptions import DriverNotFoundError
from src.domain.models import CreateDriverRequest, Driver
from src.repositories.abstract import DriverRepository
from src.utils.logging import get_logger

log = get_logger(__name__)


class DriverService:
    def __init__(self, drivers: DriverRepository) -> None:
        self.drivers = drivers

    async def create_driver(self, request: CreateDriverRequest) -> Driver:
        driver = Driver(
            id=str(uuid.uuid4()),
            firstname=request.firstname,
            lastname=request.lastname,
            driver_license_id=request.driver_license_id,
        )
        created = await self.drivers.create(driver)
        log.info("Driver created", extra={"driver_id": created.id})
        return created

    async def get_driver_by_id(self, driver_id: str) -> Driver:
        driver = await self.drivers.find_by_id(driver_id)
        if driver is None:
            raise DriverNotFoundError(driver_id)
        return driver

    async def get_drivers(self) -> List[Driver]:
        return await self.drivers.find_all()


__all__ = ["DriverService"]
