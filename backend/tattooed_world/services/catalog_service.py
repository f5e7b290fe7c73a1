"""Specialty and service catalog: public listings and admin creation."""

import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import ConflictError
from tattooed_world.models import Service, Specialty
from tattooed_world.schemas.artist import (
    ServiceCreateRequest,
    ServiceResponse,
    SpecialtyCreateRequest,
    SpecialtyResponse,
)

logger = logging.getLogger(__name__)


class CatalogService:
    async def list_specialties(self, db: AsyncSession) -> List[SpecialtyResponse]:
        rows = await db.execute(select(Specialty).order_by(Specialty.name.asc()))
        return [SpecialtyResponse.model_validate(s) for s in rows.scalars()]

    async def list_services(self, db: AsyncSession) -> List[ServiceResponse]:
        rows = await db.execute(select(Service).order_by(Service.name.asc()))
        return [ServiceResponse.model_validate(s) for s in rows.scalars()]

    async def _name_taken(self, db: AsyncSession, model, name: str) -> bool:
        query = select(model.id).where(func.lower(model.name) == name.lower())
        return (await db.execute(query)).first() is not None

    async def create_specialty(
        self, db: AsyncSession, data: SpecialtyCreateRequest
    ) -> SpecialtyResponse:
        name = data.name.strip()
        if await self._name_taken(db, Specialty, name):
            raise ConflictError(f"Specialty '{name}' already exists")
        specialty = Specialty(name=name, category=data.category, description=data.description)
        db.add(specialty)
        await db.flush()
        logger.info("Specialty created: %s", name)
        return SpecialtyResponse.model_validate(specialty)

    async def create_service(self, db: AsyncSession, data: ServiceCreateRequest) -> ServiceResponse:
        name = data.name.strip()
        if await self._name_taken(db, Service, name):
            raise ConflictError(f"Service '{name}' already exists")
        service = Service(
            name=name,
            description=data.description,
            price=data.price,
            duration=data.duration,
        )
        db.add(service)
        await db.flush()
        logger.info("Service created: %s", name)
        return ServiceResponse.model_validate(service)


catalog_service = CatalogService()
