"""Side artifacts built from a share's download URL: email and QR code."""

import base64
import io
import logging

import qrcode
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from fileshare.core.config import settings
from fileshare.core.exceptions import NotificationFailed
from fileshare.services.lifecycle import ShareLifecycle

logger = logging.getLogger(__name__)


def get_mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.MAIL_USERNAME,
        MAIL_PASSWORD=settings.MAIL_PASSWORD,
        MAIL_FROM=settings.MAIL_FROM,
        MAIL_PORT=settings.MAIL_PORT,
        MAIL_SERVER=settings.MAIL_SERVER,
        MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
        MAIL_STARTTLS=settings.MAIL_STARTTLS,
        MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
        USE_CREDENTIALS=settings.USE_CREDENTIALS,
        VALIDATE_CERTS=settings.VALIDATE_CERTS,
    )


def build_share_email(record, download_url: str, recipient: str) -> MessageSchema:
    size_kb = (record.size_bytes or 0) / 1024
    body = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6;">
          <h2>You've received a file!</h2>
          <p><strong>File Name:</strong> {record.display_name}</p>
          <p><strong>Size:</strong> {size_kb:.2f} KB</p>
          <p><a href="{download_url}" target="_blank">Click here to download</a></p>
        </div>
    """
    return MessageSchema(
        subject="Your Shared File Link",
        recipients=[recipient],
        body=body,
        subtype=MessageType.html,
    )


async def send_share_email(lifecycle: ShareLifecycle, record, recipient: str, mailer: FastMail) -> None:
    """
    Mail a fresh signed link for `record` to `recipient`.

    Raises:
        NotificationFailed: the mail transport rejected the message
    """
    download_url = lifecycle.issue_download_url(record)
    message = build_share_email(record, download_url, recipient)
    try:
        await mailer.send_message(message)
    except (ConnectionErrors, OSError) as e:
        logger.error(f"Sending share {record.id} to {recipient} failed: {e}")
        raise NotificationFailed() from e
    logger.info(f"Sent share {record.id} link to {recipient}")


def render_share_qr(lifecycle: ShareLifecycle, record, box_size: int = 10, border: int = 4) -> str:
    """
    Encode a fresh signed link for `record` as a QR code.

    Returns:
        PNG data URL ("data:image/png;base64,...")
    """
    download_url = lifecycle.issue_download_url(record)

    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(download_url)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = io.BytesIO()
    img.save(buffered, format="PNG")
    img_str = base64.b64encode(buffered.getvalue()).decode()
    return f"data:image/png;base64,{img_str}"
