# newsletter/routers/dependencies.py
from typing import Optional
from uuid import UUID
from fastapi import Header


async def get_actor_id(x_user_id: Optional[UUID] = Header(default=None, alias="X-User-Id")) -> Optional[UUID]:
    """Acting user as forwarded by the upstream auth layer"""
    return x_user_id
