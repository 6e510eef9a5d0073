"""Teacher authentication and profiles."""
from typing import List
import uuid

from fastapi import APIRouter, status

from app.api.deps import DB, CurrentAccount
from app.schemas.account import (
    TeacherRegister,
    TeacherLogin,
    TeacherUpdate,
    TeacherResponse,
    FCMTokenUpdate,
    AuthResponse,
)
from app.schemas.base import DataResponse, MessageResponse
from app.services.account_service import TEACHER, TeacherService, issue_token

router = APIRouter(tags=["Teacher Auth"])


@router.post("/register", response_model=DataResponse[TeacherResponse], status_code=status.HTTP_201_CREATED)
async def register_teacher(data: TeacherRegister, db: DB):
    teacher = await TeacherService(db).register(data)
    return DataResponse(
        message="Teacher registered successfully",
        data=TeacherResponse.model_validate(teacher),
    )


@router.post("/login", response_model=AuthResponse)
async def login_teacher(data: TeacherLogin, db: DB):
    """Authenticate with mobile number and password."""
    teacher = await TeacherService(db).authenticate(data.mobile_number, data.password)
    token, expires_in = issue_token(teacher.id, TEACHER)
    return AuthResponse(
        message="Login successful",
        access_token=token,
        expires_in=expires_in,
        account_type=TEACHER,
        teacher=TeacherResponse.model_validate(teacher),
    )


@router.get("/teacher/{teacher_id}", response_model=DataResponse[TeacherResponse])
async def get_teacher(teacher_id: uuid.UUID, db: DB):
    teacher = await TeacherService(db).get_teacher(teacher_id)
    return DataResponse(data=TeacherResponse.model_validate(teacher))


@router.put("/teacher/{teacher_id}", response_model=DataResponse[TeacherResponse])
async def update_teacher(teacher_id: uuid.UUID, data: TeacherUpdate, db: DB):
    teacher = await TeacherService(db).update_teacher(teacher_id, data)
    return DataResponse(
        message="Teacher profile updated successfully",
        data=TeacherResponse.model_validate(teacher),
    )


@router.get("/teachers", response_model=DataResponse[List[TeacherResponse]])
async def list_teachers(db: DB):
    teachers = await TeacherService(db).get_teachers()
    return DataResponse(data=[TeacherResponse.model_validate(t) for t in teachers])


@router.put("/teacher/{teacher_id}/fcm-token", response_model=MessageResponse)
async def update_fcm_token(teacher_id: uuid.UUID, data: FCMTokenUpdate, db: DB, account: CurrentAccount):
    account.require(teacher_id, TEACHER)
    await TeacherService(db).set_fcm_token(teacher_id, data.fcm_token)
    return MessageResponse(message="FCM token updated successfully")
