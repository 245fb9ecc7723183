"""
Router principal de la API v1.
Agrupa todos los endpoints de la versión 1.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import bindings, sync, webhooks


# Router principal de la API v1
api_router = APIRouter(prefix="/v1")

# Incluir routers de endpoints específicos
api_router.include_router(bindings.router)
api_router.include_router(sync.router)
api_router.include_router(webhooks.router)
