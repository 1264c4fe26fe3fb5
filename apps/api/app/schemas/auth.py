"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from app.db.enums import Role


class UserSession(BaseModel):
    """
    Caller context for authenticated requests.

    Returned by the get_current_session dependency and passed explicitly
    into service calls, so every query is scoped by org_id.
    """
    user_id: UUID
    org_id: UUID
    role: Role
    email: str
    display_name: str
