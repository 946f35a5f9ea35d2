# app/routers/__init__.py 

from fastapi import APIRouter

# 1. Importar todos los routers
from . import auth_router, device_router, device_control_router, oauth_router, alexa_router

# 2. Crear el router para la API REST con el prefijo v1
api_router = APIRouter(prefix="/api/v1")

# 3. Incluir solo los routers de la API REST
api_router.include_router(auth_router.router)
api_router.include_router(device_router.router)
api_router.include_router(device_control_router.router)

# oauth_router y alexa_router no se incluyen aquí: sus URLs se registran en la consola de Alexa sin prefijo
