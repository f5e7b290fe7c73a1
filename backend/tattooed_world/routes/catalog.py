"""Public specialty and service catalog. Admin creation lives in admin.py."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.schemas.artist import ServiceResponse, SpecialtyResponse
from tattooed_world.services.catalog_service import catalog_service

router = APIRouter(prefix="/api", tags=["Catalog"])


@router.get("/specialties", response_model=list[SpecialtyResponse], summary="List specialties")
async def list_specialties(db: AsyncSession = Depends(get_db_session)) -> list[SpecialtyResponse]:
    return await catalog_service.list_specialties(db)


@router.get("/services", response_model=list[ServiceResponse], summary="List services")
async def list_services(db: AsyncSession = Depends(get_db_session)) -> list[ServiceResponse]:
    return await catalog_service.list_services(db)
