from __future__ import annotations

from email.message import EmailMessage

from framework.config import settings
from framework.logging.logger import get_logger

logger = get_logger("notifier")


def _mask_email(email: str) -> str:
    name, _, domain = email.partition("@")
    return f"{name[:1]}***@{domain}"


async def notify_team_invitation(
    email_to: str,
    inviter_name: str,
    tenant_name: str,
    role: str,
    invite_link: str,
) -> bool:
    """
    Team invitation email.
    - NOTIFICATION_DRIVER=mock: log only (without the link), return True
    - NOTIFICATION_DRIVER=email: send via SMTP
    Failures are logged and reported as False, never raised.
    """
    driver = (settings.NOTIFICATION_DRIVER or "mock").lower()

    subject = f"{inviter_name} invited you to join {tenant_name} on {settings.APP_NAME}"
    body = "\n".join([
        f"{inviter_name} has invited you to join {tenant_name} as {'an' if role[:1] in 'aeiou' else 'a'} {role}.",
        "",
        "Accept the invitation and create your account:",
        invite_link,
        "",
        f"This invitation expires in {settings.INVITATION_TTL_DAYS} days.",
    ]) + "\n"

    if driver == "mock":
        logger.info(
            f"[MOCK] send team invitation to={_mask_email(email_to)} "
            f"tenant={tenant_name!r} role={role}"
        )
        return True

    if driver != "email":
        logger.warning(f"Unsupported NOTIFICATION_DRIVER={settings.NOTIFICATION_DRIVER!r}, skip sending")
        return False

    if not settings.SMTP_HOST or not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("SMTP not configured (SMTP_HOST/SMTP_USER/SMTP_PASSWORD missing), skip sending")
        return False

    msg = EmailMessage()
    msg["From"] = settings.SMTP_USER
    msg["To"] = email_to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        import aiosmtplib

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT or 587,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            start_tls=True,
        )
        logger.info(f"Team invitation email sent to={_mask_email(email_to)}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send invitation email to={_mask_email(email_to)}: {type(e).__name__}: {e}")
        return False
