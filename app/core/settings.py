from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    URL_DATABASE_SQL: str
    URL_DATABASE_REDIS: str
    KEY_SECRET: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    AUTH_CODE_EXPIRE_MINUTES: int = 10
    OAUTH_CLIENT_ID: str
    OAUTH_CLIENT_SECRET: str
    APP_URL: str = "http://localhost:8000"
    BREVO_API_KEY: str
    BREVO_SENDER_EMAIL: str
    DISCORD_WEBHOOK_URL: str = ""
    DISCORD_FLOOD_SECONDS: int = 20
    LOG_LEVEL: str = "INFO"
    LOG_FILE_NAME: str = "smarthome.log"
    MQTT_BROKER_HOST: str
    MQTT_BROKER_PORT: int = 1883
    MQTT_USER: str = ""
    MQTT_PASS: str = ""
    MQTT_CLIENT_ID: str = "smarthome-backend"
    MQTT_PUBLISH_TIMEOUT: float = 5.0
    ALEXA_MANUFACTURER_NAME: str = "MyHome"


    model_config = {"env_file":".env"}


settings = Settings()
