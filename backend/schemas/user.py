from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str
    name: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Admin role with its permission flags
class AdminRoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    permissions: Dict[str, bool]

    model_config = ConfigDict(from_attributes=True)

# Back-office account of a user
class AdminResponse(BaseModel):
    id: int
    user_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    user: UserResponse
    role: AdminRoleResponse

    model_config = ConfigDict(from_attributes=True)

# Schema for granting or changing an admin role
class RoleUpdate(BaseModel):
    role: str

# Paginated user list with admin details where present
class UserWithAdmin(UserResponse):
    admin_role: Optional[str] = None
    admin_active: Optional[bool] = None

class PaginatedUsersResponse(BaseModel):
    items: List[UserWithAdmin]
    total: int
    page: int
    page_size: int
