# app/services/email_service.py

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from app.core import logger, settings
from app.core.exceptions import EmailDeliveryError

SENDER_NAME = "Smart Home"


def _send_email(to_email: str, subject: str, html_content: str):
    configuration = sib_api_v3_sdk.Configuration()
    configuration.api_key['api-key'] = settings.BREVO_API_KEY

    api_instance = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))

    sender = {"name": SENDER_NAME, "email": settings.BREVO_SENDER_EMAIL}
    to = [{"email": to_email}]
    send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(to=to, html_content=html_content, sender=sender, subject=subject)

    try:
        api_response = api_instance.send_transac_email(send_smtp_email)
        logger.info(f"Correo '{subject}' enviado a {to_email}. Message ID: {api_response.message_id}")
    except ApiException as e:
        logger.error(f"Error al enviar correo via API de Brevo: {e}")
        raise EmailDeliveryError("Could not send email", {"to": to_email}) from e


def send_email_verification_email(to_email: str, token: str):
    confirm_link = f"{settings.APP_URL}/api/v1/auth/confirm-email?token={token}"
    html_content = (
        "<html><body><p>Hola,</p>"
        "<p>Gracias por registrarte en Smart Home.</p>"
        f"<p>Confirma tu correo con el siguiente enlace:</p><p><a href=\"{confirm_link}\">{confirm_link}</a></p>"
        "<p>El enlace expira en 24 horas. Si no creaste esta cuenta, ignora este correo.</p>"
        "</body></html>"
    )
    _send_email(to_email, "Confirma tu correo - Smart Home", html_content)


def send_password_reset_email(to_email: str, token: str):
    reset_link = f"{settings.APP_URL}/reset-password?token={token}"
    html_content = (
        "<html><body><p>Hola,</p>"
        "<p>Recibimos una solicitud para restablecer tu contraseña.</p>"
        f"<p>Crea una nueva aquí:</p><p><a href=\"{reset_link}\">{reset_link}</a></p>"
        "<p>El enlace expira en 1 hora. Si no lo solicitaste, ignora este correo.</p>"
        "</body></html>"
    )
    _send_email(to_email, "Restablecimiento de contraseña - Smart Home", html_content)
