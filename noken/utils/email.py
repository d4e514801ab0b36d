import logging
from email.message import EmailMessage

import aiosmtplib

from noken.config import settings

logger = logging.getLogger(__name__)


class MailDisabledError(RuntimeError):
    pass


async def send_email_async(subject: str, email_to: str, body: str, html: str = None):
    if not settings.MAIL_SERVER:
        raise MailDisabledError("MAIL_SERVER non configuré")

    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = email_to
    message["Subject"] = subject
    message.set_content(body)
    if html:
        message.add_alternative(html, subtype="html")

    await aiosmtplib.send(
        message,
        hostname=settings.MAIL_SERVER,
        port=settings.MAIL_PORT,
        username=settings.MAIL_USERNAME or None,
        password=settings.MAIL_PASSWORD or None,
        start_tls=settings.MAIL_STARTTLS,
    )
    logger.info(f"📧 Email envoyé à {email_to} : {subject}")


async def send_verification_code(email_to: str, code: str):
    minutes = settings.VERIFICATION_CODE_EXPIRE_MINUTES
    body = (
        "Bienvenue sur Noken Declic !\n\n"
        f"Votre code de vérification : {code}\n\n"
        f"Ce code expire dans {minutes} minutes.\n"
        "Si vous n'avez pas créé de compte, ignorez cet email."
    )
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h1 style="color: #16a34a;">Noken Declic</h1>
      <h2>Vérifiez votre adresse email</h2>
      <p>Utilisez le code ci-dessous pour activer votre compte :</p>
      <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px;">{code}</p>
      <p>⏱️ Ce code expire dans <strong>{minutes} minutes</strong></p>
    </div>
    """
    await send_email_async("🔐 Votre code de vérification Noken", email_to, body, html)


async def send_password_reset_email(email_to: str, reset_link: str):
    body = (
        "Vous avez demandé la réinitialisation de votre mot de passe Noken Declic.\n\n"
        f"Cliquez sur ce lien pour choisir un nouveau mot de passe : {reset_link}\n\n"
        "Ce lien expire dans 1 heure."
    )
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h1 style="color: #16a34a;">Noken Declic</h1>
      <h2>Réinitialisation du mot de passe</h2>
      <p><a href="{reset_link}">Réinitialiser mon mot de passe</a></p>
      <p>Ce lien expire dans <strong>1 heure</strong>.</p>
    </div>
    """
    await send_email_async("🔑 Réinitialisation de votre mot de passe Noken", email_to, body, html)
