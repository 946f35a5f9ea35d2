from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from celery import Celery
from celery.schedules import crontab
from contextlib import asynccontextmanager

from app.core import settings, logger
from app.core.discord_logger import send_discord_alert
from app.core.mqtt_client import mqtt_client
from app.database import Base, SessionLocal, engine
from app.routers import api_router, oauth_router, alexa_router
from app.services import StateReconciler, purge_expired_tokens

import os

os.environ['TZ'] = 'UTC'

import time
time.tzset()


# --- Configuración de Celery ---
celery_app = Celery(
    'tasks',
    broker=settings.URL_DATABASE_REDIS,
    backend=settings.URL_DATABASE_REDIS
)

celery_app.conf.update(
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],
    broker_connection_retry_on_startup=True
)


# --- Definición de Tareas Programadas (Celery Beat) ---
@celery_app.on_after_configure.connect
def setup_periodic_tasks(sender, **kwargs):
    """
    Configura las tareas que se ejecutarán periódicamente.
    """
    logger.info("Configurando tareas periódicas de Celery...")

    # Limpiar códigos OAuth y tokens expirados (todos los días, 4 AM)
    sender.add_periodic_task(
        crontab(minute='0', hour='4'),
        purge_expired_tokens_job.s(),
        name='Limpiar tokens expirados'
    )


@celery_app.task
def purge_expired_tokens_job():
    """Borra códigos de autorización, refresh tokens y tokens de email expirados"""
    db = SessionLocal()
    try:
        deleted = purge_expired_tokens(db)
        logger.info(f"🧹 Limpieza de tokens: {deleted}")
        return deleted
    except Exception as e:
        logger.exception(f"❌ Error en la limpieza de tokens: {e}")
        send_discord_alert(f"Error en limpieza de tokens: {e}", level="ERROR")
        return {"error": str(e)}
    finally:
        db.close()


# --- Configuración de FastAPI ---
api_description = """
Backend Smart Home: registro de dispositivos, control por MQTT y skill de Alexa.

## MQTT

* **Comandos:** `users/{user_id}/devices/{endpoint_id}/command`
* **Estado:** `users/{user_id}/devices/{endpoint_id}/state` con `ON`, `OFF` o `{"power": "ON"}`
* **Telemetría:** `users/{user_id}/devices/{endpoint_id}/telemetry`

## Alexa

* **Directivas:** `POST /alexa`
* **Account linking:** `GET /oauth/authorize`, `POST /oauth/token`
"""

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- CÓDIGO DE ARRANQUE (Startup) ---
    logger.info("🚀 Iniciando API Smart Home...")
    Base.metadata.create_all(bind=engine)
    mqtt_client.connect()

    reconciler = StateReconciler(mqtt_client)
    reconciler.start()
    app.state.reconciler = reconciler

    yield  # <-- Aquí es donde la API se queda corriendo y escuchando peticiones

    # --- CÓDIGO DE CIERRE (Shutdown) ---
    logger.info("🛑 Deteniendo servicios...")
    await reconciler.stop()
    mqtt_client.disconnect()


app = FastAPI(
    title="Smart Home API",
    description=api_description,
    version="1.0.0",
    lifespan=lifespan
)


# --- Middleware CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Routers ---
app.include_router(api_router)
app.include_router(oauth_router.router)
app.include_router(alexa_router.router)


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Bienvenido a la API de Smart Home v1"}


# --- Manejo global de errores ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    message = f"Error 500 en {request.url.path}: {exc}"
    logger.exception(message)
    send_discord_alert(message, level="CRITICAL")
    return JSONResponse(
        status_code=500,
        content={"detail": "Error interno del servidor."}
    )


# --- Notificación al iniciar la API ---
send_discord_alert("API Smart Home iniciada correctamente.", level="INFO")
