import html
import logging
from datetime import datetime
from functools import lru_cache

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from clinic_api.config import Settings, settings
from clinic_api.errors import DependencyError

logger = logging.getLogger(__name__)

BRAND_PRIMARY = "#27a4db"
BRAND_SECONDARY = "#81be41"


def build_mail_config(conf: Settings) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=conf.MAIL_USERNAME,
        MAIL_PASSWORD=conf.MAIL_PASSWORD,
        MAIL_FROM=conf.MAIL_FROM,
        MAIL_FROM_NAME=conf.MAIL_FROM_NAME,
        MAIL_PORT=conf.MAIL_PORT,
        MAIL_SERVER=conf.MAIL_SERVER,
        MAIL_STARTTLS=conf.MAIL_STARTTLS,
        MAIL_SSL_TLS=conf.MAIL_SSL_TLS,
        USE_CREDENTIALS=bool(conf.MAIL_USERNAME),
        VALIDATE_CERTS=True,
    )


def render_reset_otp_email(name: str, otp: str, clinic_name: str, expiry_minutes: int) -> str:
    name, clinic_name = html.escape(name), html.escape(clinic_name)
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: auto; border: 1px solid #e0e0e0; border-radius: 10px; overflow: hidden;">
        <div style="background-color: {BRAND_PRIMARY}; color: white; padding: 20px 30px; text-align: center;">
            <h1 style="margin: 0; font-size: 24px;">Password Reset Request</h1>
            <p style="margin: 5px 0 0; font-size: 14px;">{clinic_name}</p>
        </div>
        <div style="padding: 30px; background-color: #ffffff;">
            <p style="font-size: 16px; color: #333;">Hello {name},</p>
            <p style="font-size: 16px; color: #333;">We received a request to reset the password for your {clinic_name} account. Use the following One-Time Password (OTP) to choose a new password.</p>
            <div style="text-align: center; margin: 30px 0;">
                <span style="display: inline-block; background-color: #f7f7f7; color: {BRAND_PRIMARY}; font-size: 36px; font-weight: bold; padding: 20px 40px; border-radius: 8px; border: 3px solid {BRAND_SECONDARY}; letter-spacing: 3px;">{otp}</span>
            </div>
            <p style="font-size: 14px; color: #555; text-align: center;">This OTP is valid for the next {expiry_minutes} minutes.</p>
            <p style="font-size: 14px; color: #555;">If you did not request a password reset, please ignore this email.</p>
        </div>
        <div style="background-color: #f7f7f7; color: #888; padding: 15px 30px; text-align: center; font-size: 12px;">
            <p style="margin: 0;">This is an automated message. Please do not reply.</p>
            <p style="margin: 5px 0 0;">&copy; {datetime.now().year} {clinic_name}. All rights reserved.</p>
        </div>
    </div>
    """


class MailSender:
    """Delivers transactional emails through fastapi-mail."""

    def __init__(self, conf: Settings = settings):
        self.clinic_name = conf.CLINIC_NAME
        self.mail = FastMail(build_mail_config(conf))

    async def send_password_reset_otp(self, email: str, name: str, otp: str, expiry_minutes: int) -> None:
        message = MessageSchema(
            subject=f"Your Password Reset OTP (Valid for {expiry_minutes} Minutes)",
            recipients=[email],
            body=render_reset_otp_email(name, otp, self.clinic_name, expiry_minutes),
            subtype=MessageType.html,
        )

        try:
            await self.mail.send_message(message)
        except ConnectionErrors as exc:
            raise DependencyError("Email could not be sent. Server error.", str(exc)) from exc

        logger.info("Password reset OTP sent to %s", email)


@lru_cache
def get_mail_sender() -> MailSender:
    return MailSender()
