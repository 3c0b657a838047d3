import logging
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.config import settings
from clinic_api.database import store_errors, user_collection
from clinic_api.errors import AuthenticationError, ConflictError, DependencyError, ValidationError
from clinic_api.models.base import now
from clinic_api.models.user import ResetPassword, UserLogin, UserPublic, UserRegister, UserRole
from clinic_api.notifications import MailSender
from clinic_api.security import hash_password, verify_password
from clinic_api.utils.otp import generate_otp, get_otp_expiry, hash_otp

logger = logging.getLogger(__name__)


async def register_user(db: AsyncIOMotorDatabase, data: UserRegister) -> UserPublic:
    users = user_collection(db)
    with store_errors("registering user"):
        if await users.find_one({"email": data.email}):
            logger.warning("Registration failed: duplicate email %s", data.email)
            raise ConflictError("Email already registered.")

        user_dict = {
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
            "passwordHash": hash_password(data.password),
            # Admin only when explicitly requested
            "role": UserRole.ADMIN.value if data.role == UserRole.ADMIN.value else UserRole.STAFF.value,
            "resetToken": None,
            "resetTokenExpiry": None,
            "createdAt": now(),
        }
        result = await users.insert_one(user_dict)
        new_user = await users.find_one({"_id": result.inserted_id})

    logger.info("New user registered: %s (%s)", data.email, user_dict["role"])
    return UserPublic(**new_user)


async def authenticate_user(db: AsyncIOMotorDatabase, credentials: UserLogin) -> UserPublic:
    with store_errors("logging in"):
        user = await user_collection(db).find_one({"email": credentials.email})

    if not user or not verify_password(credentials.password, user.get("passwordHash", "")):
        logger.info("Login failed for email: %s", credentials.email)
        raise AuthenticationError("Invalid credentials.")

    logger.info("User logged in: %s", credentials.email)
    return UserPublic(**user)


async def request_password_reset(db: AsyncIOMotorDatabase, mail_sender: MailSender, email: str) -> None:
    """
    Mail a one-time password to the user, if one is registered under `email`.

    Callers respond identically whether or not the user exists. If the mail
    cannot be sent the stored OTP is cleared again.
    """
    users = user_collection(db)
    with store_errors("processing forgot password"):
        user = await users.find_one({"email": email})
        if not user:
            logger.info("Forgot password request for non-existent email: %s", email)
            return

        otp = generate_otp(settings.OTP_LENGTH)
        await users.update_one(
            {"_id": user["_id"]},
            {"$set": {"resetToken": hash_otp(otp), "resetTokenExpiry": get_otp_expiry(settings.OTP_EXPIRY_MINUTES)}},
        )

    try:
        await mail_sender.send_password_reset_otp(email, user["name"], otp, settings.OTP_EXPIRY_MINUTES)
    except DependencyError:
        with store_errors("clearing reset token"):
            await users.update_one({"_id": user["_id"]}, {"$set": {"resetToken": None, "resetTokenExpiry": None}})
        logger.error("Failed to send password reset email to %s", email)
        raise


async def reset_password(db: AsyncIOMotorDatabase, data: ResetPassword) -> None:
    users = user_collection(db)
    with store_errors("resetting password"):
        user = await users.find_one(
            {
                "email": data.email,
                "resetToken": hash_otp(data.otp),
                "resetTokenExpiry": {"$gt": datetime.now()},
            }
        )
        if not user:
            logger.info("Password reset failed for %s: invalid or expired OTP", data.email)
            raise ValidationError("Invalid or expired OTP. Please try the forgot password process again.")

        await users.update_one(
            {"_id": user["_id"]},
            {"$set": {"passwordHash": hash_password(data.password), "resetToken": None, "resetTokenExpiry": None}},
        )

    logger.info("Password successfully reset for user: %s", data.email)
