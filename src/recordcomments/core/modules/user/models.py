from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recordcomments.core.modules.comment.models import Person
from recordcomments.core.modules.mention.models import UserMention


class UserInfo(BaseModel):
    """Mentionable project member, merged from every user source."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str = Field(..., description="E-mail address; for SSO users the SSO username, which may not be an address")
    name: str
    avatar_url: str | None = None

    def to_mention(self) -> UserMention:
        return UserMention(id=self.id, name=self.name, email=self.email, avatar_url=self.avatar_url)

    def to_person(self) -> Person:
        return Person(name=self.name, email=self.email)


class RegularUserAttributes(BaseModel):
    email: str
    full_name: str | None = None


class RegularUser(BaseModel):
    """Collaborator account as returned by the CMS."""

    id: str
    attributes: RegularUserAttributes


class SsoUserAttributes(BaseModel):
    username: str
    first_name: str | None = None
    last_name: str | None = None


class SsoUser(BaseModel):
    """SSO-provisioned user; the CMS does not expose an e-mail for these."""

    id: str
    attributes: SsoUserAttributes


class Owner(BaseModel):
    """Project owner, either an individual account or an organization.

    Properties may sit at the top level or under `attributes` depending on the source.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "account"
    attributes: dict[str, Any] = Field(default_factory=dict)

    def get_string(self, key: str) -> str | None:
        value = (self.model_extra or {}).get(key)
        if not isinstance(value, str):
            value = self.attributes.get(key)
        return value if isinstance(value, str) else None
