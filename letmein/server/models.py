from datetime import datetime, timezone
from typing import ClassVar, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from letmein.core.models import Profile


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    __tablename__: ClassVar[str] = "accounts"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    verify: str
    created_at: datetime = Field(default_factory=_utcnow)
    # last stamp handed out, epoch milliseconds; strictly increasing per account
    last_stamp: int = 0
    profiles: List["StoredProfile"] = Relationship(back_populates="account",
                                                   sa_relationship_kwargs={"cascade": "all, delete"})

    def next_stamp(self, now_ms: int) -> int:
        self.last_stamp = max(now_ms, self.last_stamp + 1)
        return self.last_stamp


class StoredProfile(SQLModel, table=True):
    __tablename__: ClassVar[str] = "profiles"
    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="accounts.id", index=True)
    uuid: str = Field(index=True)

    scheme: str = ""
    name: str = ""
    username: str = ""
    url: str = ""
    generation: int = 0
    length: int = 0
    lower: bool = False
    upper: bool = False
    digits: bool = False
    punctuation: bool = False
    spaces: bool = False
    include: str = ""
    exclude: str = ""

    # account stamp of the last push, drives incremental sync
    updated_at: int = Field(default=0, index=True)
    account: Account = Relationship(back_populates="profiles")

    def assign(self, profile: Profile):
        data = profile.model_dump(exclude={"uuid", "modified_at"})
        for key, value in data.items():
            setattr(self, key, value)

    def to_profile(self) -> Profile:
        return Profile(
            uuid=self.uuid,
            scheme=self.scheme,
            name=self.name,
            username=self.username,
            url=self.url,
            generation=self.generation,
            length=self.length,
            lower=self.lower,
            upper=self.upper,
            digits=self.digits,
            punctuation=self.punctuation,
            spaces=self.spaces,
            include=self.include,
            exclude=self.exclude,
        )
