"""Admin registration and sign-in."""
from fastapi import APIRouter, status

from app.api.deps import DB
from app.schemas.account import AdminRegister, AdminLogin, AdminResponse, AdminAuthResponse
from app.services.account_service import ADMIN, AdminService, issue_token

router = APIRouter(tags=["Admin Auth"])


@router.post("/register", response_model=AdminAuthResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(data: AdminRegister, db: DB):
    admin = await AdminService(db).register(data)
    token, expires_in = issue_token(admin.id, ADMIN)
    return AdminAuthResponse(
        message="Admin registered successfully",
        access_token=token,
        expires_in=expires_in,
        account_type=ADMIN,
        admin=AdminResponse.model_validate(admin),
    )


@router.post("/login", response_model=AdminAuthResponse)
async def login_admin(data: AdminLogin, db: DB):
    admin = await AdminService(db).authenticate(str(data.email), data.password)
    token, expires_in = issue_token(admin.id, ADMIN)
    return AdminAuthResponse(
        message="Login successful",
        access_token=token,
        expires_in=expires_in,
        account_type=ADMIN,
        admin=AdminResponse.model_validate(admin),
    )
