from typing import Optional
from fastapi import Header
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.operator import Operator

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_operator(
    x_operator_id: Optional[str] = Header(default=None),
    x_operator_roles: Optional[str] = Header(default=None),
) -> Operator:
    """
    Resolve the calling operator from gateway headers

    The upstream gateway authenticates the caller and forwards its id and a
    comma-separated role list. Roles map to permissions via
    ApplicationConfig.ROLE_PERMISSIONS.
    """
    if ApplicationConfig.AUTH_DISABLED:
        return Operator.system(x_operator_id or "system")

    roles = [role.strip() for role in (x_operator_roles or "").split(",") if role.strip()]
    return Operator.from_roles(
        x_operator_id or "anonymous", roles, ApplicationConfig.ROLE_PERMISSIONS
    )
