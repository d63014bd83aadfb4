"""Auth API routes for signup, login and credential changes."""

from fastapi import APIRouter, Depends, status

from app.application.services.auth_service import AuthService
from app.domain.schemas.auth import (
    ChangePasswordRequest,
    CompleteSignupRequest,
    ConfirmEmailChangeRequest,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PreSignupRequest,
    ResetPasswordRequest,
    SignupStarted,
    UserIdResponse,
    UserSummary,
    VerifyEmailChangeRequest,
    VerifyOtpRequest,
)
from app.interfaces.deps import get_auth_service

router = APIRouter(tags=["Auth"])


@router.post("/pre-signup", response_model=SignupStarted)
async def pre_signup(body: PreSignupRequest, auth: AuthService = Depends(get_auth_service)):
    email = await auth.pre_signup(body)
    return SignupStarted(message="Verification code sent to email", email=email)


@router.post("/complete-signup", response_model=UserIdResponse, status_code=status.HTTP_201_CREATED)
async def complete_signup(body: CompleteSignupRequest, auth: AuthService = Depends(get_auth_service)):
    user_id = await auth.complete_signup(body.email, body.code)
    return UserIdResponse(message="User registered successfully", user_id=user_id)


@router.post("/resend-verification-code", response_model=MessageResponse)
async def resend_verification_code(body: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.resend_verification_code(body.email)
    return MessageResponse(message="Verification code resent")


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    user = await auth.login(body.identifier, body.password)
    return LoginResponse(user=UserSummary(**user))


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.forgot_password(body.email)
    return MessageResponse(message="OTP sent to email")


@router.post("/resend-password-otp", response_model=MessageResponse)
async def resend_password_otp(body: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.resend_password_otp(body.email)
    return MessageResponse(message="OTP resent to email")


@router.post("/verify-otp", response_model=UserIdResponse)
async def verify_otp(body: VerifyOtpRequest, auth: AuthService = Depends(get_auth_service)):
    user_id = await auth.verify_otp(body.email, body.otp)
    return UserIdResponse(message="OTP verified successfully", user_id=user_id)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.reset_password(body.email, body.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(body: ChangePasswordRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.change_password(body.user_id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/verify-email-change", response_model=MessageResponse)
async def verify_email_change(body: VerifyEmailChangeRequest, auth: AuthService = Depends(get_auth_service)):
    await auth.verify_email_change(body.user_id, body.password, body.new_email)
    return MessageResponse(message="OTP sent to new email")


@router.post("/confirm-email-change")
async def confirm_email_change(body: ConfirmEmailChangeRequest, auth: AuthService = Depends(get_auth_service)):
    email = await auth.confirm_email_change(body.user_id, body.otp)
    return {"message": "Email updated successfully", "email": email}
