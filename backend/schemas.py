from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict


def _present(value: Optional[str]) -> bool:
    """Empty strings count as absent, matching the clients' form submissions."""
    return value is not None and value != ""


class PatchModel(BaseModel):
    """
    Partial update body: every field optional.

    ``changes()`` yields only the fields the client actually supplied with a
    non-empty value, so "absent" and "sent as empty" both leave the stored value
    untouched.
    """

    def changes(self) -> Dict[str, str]:
        supplied = self.model_dump(exclude_unset=True)
        return {key: value for key, value in supplied.items() if _present(value)}


# Auth schemas
class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    password: Optional[str] = None

    def is_complete(self) -> bool:
        return all(_present(v) for v in (self.first_name, self.last_name, self.email, self.password))


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")


# Project schemas
class ProjectCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class ProjectUpdate(PatchModel):
    title: Optional[str] = None
    description: Optional[str] = None


class MemberRequest(BaseModel):
    email: Optional[str] = None


# Task schemas
class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None


class TaskUpdate(PatchModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None


class AssignRequest(BaseModel):
    email: Optional[str] = None


# Response shapes
class DisplayRecord(BaseModel):
    name: str
    email: str


class ProjectSummary(BaseModel):
    id: int
    title: str
    description: str


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created: str
    due_date: str
    assigned_to: List[DisplayRecord]


class AssignedTaskOut(TaskOut):
    project_id: int


class ProjectDetail(ProjectSummary):
    created: str
    members: List[DisplayRecord]
    tasks: List[TaskOut]


# Response envelopes
class ProjectListResponse(BaseModel):
    projects: List[ProjectSummary]


class ProjectResponse(BaseModel):
    project: ProjectSummary


class ProjectDetailResponse(BaseModel):
    project: ProjectDetail


class TaskResponse(BaseModel):
    task: TaskOut


class TaskListResponse(BaseModel):
    tasks: List[TaskOut]


class AssignedTaskListResponse(BaseModel):
    tasks: List[AssignedTaskOut]


class MemberResponse(BaseModel):
    member: DisplayRecord


class MemberListResponse(BaseModel):
    members: List[DisplayRecord]
