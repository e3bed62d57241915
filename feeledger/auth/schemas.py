from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr

from feeledger.core.enums import UserRole


class CurrentUser(BaseModel):
    """Acting user resolved from the identity provider's access token."""

    id: UUID
    role: UserRole
    email: Optional[EmailStr] = None

    @property
    def is_guardian(self) -> bool:
        return self.role == UserRole.PARENT
