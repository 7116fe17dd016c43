from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

ROLE_MEMBER = "Member"
ROLE_TESTER = "Tester"
ROLES = (ROLE_MEMBER, ROLE_TESTER)

LEVELS = ("Low", "Medium", "High")  # severity and priority share the scale

STATUS_OPEN = "Open"
STATUS_IN_PROGRESS = "InProgress"
STATUS_RESOLVED = "Resolved"
BUG_STATUSES = (STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED)


@dataclass(frozen=True)
class Account:
    user_id: int
    email: str
    role: str
    created_at: str
    last_login_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "Account":
        return cls(
            user_id=int(row["user_id"]),
            email=str(row["email"]),
            role=str(row["role"]),
            created_at=str(row["created_at"]),
            last_login_at=row["last_login_at"],
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
            "lastLoginAt": self.last_login_at,
        }


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    repository_url: str
    team_members: Tuple[str, ...]
    created_by: str
    created_at: str
    testers: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: Any, testers: Tuple[str, ...] = ()) -> "Project":
        members = json.loads(row["team_members_json"] or "[]")
        return cls(
            project_id=str(row["project_id"]),
            name=str(row["name"]),
            repository_url=str(row["repository_url"]),
            team_members=tuple(str(m) for m in members),
            created_by=str(row["created_by"]),
            created_at=str(row["created_at"]),
            testers=tuple(testers),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "name": self.name,
            "repositoryUrl": self.repository_url,
            "teamMembers": list(self.team_members),
            "testers": list(self.testers),
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Bug:
    bug_id: str
    project_id: str
    title: str
    description: Optional[str]
    severity: str
    priority: str
    status: str
    commit_link: Optional[str]
    assignee: Optional[str]
    reported_by: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Any) -> "Bug":
        return cls(
            bug_id=str(row["bug_id"]),
            project_id=str(row["project_id"]),
            title=str(row["title"]),
            description=row["description"],
            severity=str(row["severity"]),
            priority=str(row["priority"]),
            status=str(row["status"]),
            commit_link=row["commit_link"],
            assignee=row["assignee"],
            reported_by=row["reported_by"],
            created_at=str(row["created_at"]),
            updated_at=str(row["updated_at"]),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "bugId": self.bug_id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "priority": self.priority,
            "status": self.status,
            "commitLink": self.commit_link,
            "assignee": self.assignee,
            "reportedBy": self.reported_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
