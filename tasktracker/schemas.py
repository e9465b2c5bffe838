from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Role = Literal["admin", "user"]
Permission = Literal["read", "write"]
TaskStatus = Literal["open", "in progress", "done"]


# ACCOUNTS
class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(UserCreate):
    role: Role = "user"


class AdminUserCreate(UserCreate):
    role: Role = "user"
    permissions: Permission = "read"


class AdminUserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    permissions: Optional[Permission] = None


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    permissions: Permission
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserOut):
    created_at: datetime


class UserRef(BaseModel):
    id: int
    username: str
    email: str
    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class UserMessage(BaseModel):
    message: str
    user: UserOut


class TokenClaims(BaseModel):
    sub: str = Field(pattern=r"^\d+$")
    username: str
    role: Role
    permissions: Permission

    @property
    def user_id(self) -> int:
        return int(self.sub)


# TASKS
class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assigned_to: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[int] = None


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    assigned_to: Optional[UserRef] = Field(default=None, validation_alias="assigned_user")
    created_by: Optional[UserRef] = Field(default=None, validation_alias="creator")
    created_by_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TaskMessage(BaseModel):
    message: str
    task: TaskOut


class Message(BaseModel):
    message: str


UserList = List[UserDetail]
TaskList = List[TaskOut]
