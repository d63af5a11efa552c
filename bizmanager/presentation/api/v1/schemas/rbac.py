from pydantic import BaseModel, ConfigDict, Field


# Role Schemas
class RoleCreate(BaseModel):
    """Schema for creating a role"""

    company_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, description="Role description")


class RoleResponse(BaseModel):
    id: int
    company_id: int | None
    name: str
    description: str | None

    model_config = ConfigDict(from_attributes=True)


class RoleWithPermissionsResponse(RoleResponse):
    """Role response with permissions included"""

    permissions: list["PermissionResponse"] = []


class RoleAssignment(BaseModel):
    user_id: int
    role_id: int


class UserRoleResponse(BaseModel):
    id: int
    user_id: int
    role_id: int
    company_user_id: int | None

    model_config = ConfigDict(from_attributes=True)


class RolePermissionsUpdate(BaseModel):
    """Full replacement set; duplicates are ignored"""

    permission_ids: list[int]


# Permission Schemas
class PermissionCreate(BaseModel):
    """Schema for creating a permission and granting it to a role"""

    company_id: int
    role_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    module_action_ids: list[int] = Field(default_factory=list)


class PermissionResponse(BaseModel):
    id: int
    company_id: int | None
    name: str
    description: str | None

    model_config = ConfigDict(from_attributes=True)


# Module action Schemas
class ModuleActionResponse(BaseModel):
    id: int
    module_id: int
    module: str
    name: str
    description: str | None

    model_config = ConfigDict(from_attributes=True)


class ModuleActionAdd(BaseModel):
    module_action_id: int


class ModuleActionsUpdate(BaseModel):
    module_action_ids: list[int]


class PermissionCheckResponse(BaseModel):
    user_id: int
    module: str
    action: str
    company_id: int | None
    allowed: bool


RoleWithPermissionsResponse.model_rebuild()
