from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.response import ApiResponse
from clinic_api.models.user import ForgotPassword, ResetPassword, UserLogin, UserPublic, UserRegister
from clinic_api.notifications import MailSender, get_mail_sender
from clinic_api.services import user_service

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)

@router.post("/register", response_model=ApiResponse[UserPublic], status_code=status.HTTP_201_CREATED)
async def register(user: UserRegister, db: AsyncIOMotorDatabase = Depends(get_database)):
    new_user = await user_service.register_user(db, user)
    return ApiResponse[UserPublic](data=new_user, message="Registration successful. Please log in.")

@router.post("/login", response_model=ApiResponse[UserPublic])
async def login(credentials: UserLogin, db: AsyncIOMotorDatabase = Depends(get_database)):
    user = await user_service.authenticate_user(db, credentials)
    return ApiResponse[UserPublic](data=user, message="Login successful.")

@router.post("/forgot-password", response_model=ApiResponse[dict])
async def forgot_password(
    payload: ForgotPassword,
    db: AsyncIOMotorDatabase = Depends(get_database),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    """Always answers the same way so that registered emails cannot be probed."""
    await user_service.request_password_reset(db, mail_sender, payload.email)
    return ApiResponse[dict](data={}, message="If a user with that email exists, an OTP has been sent.")

@router.post("/reset-password", response_model=ApiResponse[dict])
async def reset_password(payload: ResetPassword, db: AsyncIOMotorDatabase = Depends(get_database)):
    await user_service.reset_password(db, payload)
    return ApiResponse[dict](data={}, message="Password successfully reset.")
