from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from . import charset
from .errors import ProfileValidationError

SCHEME_SCRYPT = "scrypt(master\turl\tusername,generation,16384,8,1,length)"

MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 256
MIN_USERNAME_LENGTH = 0
MAX_USERNAME_LENGTH = 256
MIN_URL_LENGTH = 0
MAX_URL_LENGTH = 256
MIN_LENGTH = 1
MAX_LENGTH = 32
DEFAULT_LENGTH = 16
MIN_GENERATION = 0
MAX_GENERATION = 1 << 30
DEFAULT_GENERATION = 0


def utcnow() -> datetime:
    return round_millis(datetime.now(timezone.utc))


def round_millis(ts: datetime) -> datetime:
    return ts.replace(microsecond=(ts.microsecond // 1000) * 1000)


def new_uuid() -> str:
    return str(uuid4())


class ProfileState(Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class Profile(BaseModel):
    uuid: str = ""
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

    modified_at: Optional[datetime] = None

    @property
    def state(self) -> ProfileState:
        # length < 1 is the tombstone marker on the wire and on disk
        return ProfileState.DELETED if self.length < 1 else ProfileState.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.state is ProfileState.DELETED

    @property
    def is_dirty(self) -> bool:
        return self.modified_at is not None

    def matches(self, search: str) -> bool:
        return not self.is_deleted and search.lower() in self.name.lower()

    def character_set(self) -> str:
        return charset.build_alphabet(
            lower=self.lower,
            upper=self.upper,
            digits=self.digits,
            punctuation=self.punctuation,
            spaces=self.spaces,
            include=self.include,
            exclude=self.exclude,
        )

    def mark_deleted(self, now: datetime):
        self.length = 0
        self.normalize()
        self.modified_at = now

    def normalize(self):
        """
        Bring the profile into canonical form, in place.

        Raises ProfileValidationError naming the offending field. A tombstone
        skips every check and keeps only its uuid.
        """
        if self.is_deleted:
            self.scheme = ""
            self.name = ""
            self.username = ""
            self.url = ""
            self.generation = 0
            self.length = 0
            self.lower = False
            self.upper = False
            self.digits = False
            self.punctuation = False
            self.spaces = False
            self.include = ""
            self.exclude = ""
            self.modified_at = None
            return

        if self.scheme != SCHEME_SCRYPT:
            raise ProfileValidationError(
                f"unknown scheme: only {SCHEME_SCRYPT!r} is recognized", field="scheme")

        self.name = _check_text(self.name.strip(), "name", "name",
                                MIN_NAME_LENGTH, MAX_NAME_LENGTH)
        self.username = _check_text(self.username.strip().lower(), "username", "username/email",
                                    MIN_USERNAME_LENGTH, MAX_USERNAME_LENGTH)
        self.url = _check_text(self.url.strip().lower(), "url", "website URL",
                               MIN_URL_LENGTH, MAX_URL_LENGTH)

        if not MIN_GENERATION <= self.generation <= MAX_GENERATION:
            raise ProfileValidationError(
                f"generation must be between {MIN_GENERATION} and {MAX_GENERATION}", field="generation")
        if not MIN_LENGTH <= self.length <= MAX_LENGTH:
            raise ProfileValidationError(
                f"length must be between {MIN_LENGTH} and {MAX_LENGTH}", field="length")

        self.include, self.exclude = charset.normalize_overrides(
            lower=self.lower,
            upper=self.upper,
            digits=self.digits,
            punctuation=self.punctuation,
            spaces=self.spaces,
            include=self.include,
            exclude=self.exclude,
        )

        if len(self.character_set()) < 2:
            raise ProfileValidationError(
                "profile does not allow more than 1 possible character in password", field="charset")

        if self.modified_at is not None:
            self.modified_at = round_millis(self.modified_at)

    def to_document(self) -> Dict[str, Any]:
        # zero values are omitted, uuid is always written
        doc = self.model_dump(mode="json", exclude_defaults=True)
        doc["uuid"] = self.uuid
        return doc

    def __str__(self) -> str:
        if self.is_deleted:
            return f"[deleted] uuid={self.uuid}"
        chars = ""
        if self.lower:
            chars += "a-z"
        if self.upper:
            chars += "A-Z"
        if self.digits:
            chars += "0-9"
        if self.punctuation:
            chars += "[punct]"
        if self.spaces:
            chars += "[space]"
        if self.include:
            chars += f"+[{self.include}]"
        if self.exclude:
            chars += f"-[{self.exclude}]"
        modified = "*" if self.is_dirty else ""
        return (f"{modified}[{self.name}] user:{self.username} url:{self.url} "
                f"gen:{self.generation} len:{self.length} chars:{chars}")


def _check_text(value: str, field: str, label: str, min_len: int, max_len: int) -> str:
    if not min_len <= len(value) <= max_len:
        raise ProfileValidationError(
            f"{label} must be between {min_len} and {max_len} characters", field=field)
    if not all(charset.is_printable(ch) for ch in value):
        raise ProfileValidationError(f"{label} contains an illegal character", field=field)
    return value


class ProfileOptions(BaseModel):
    """Field overrides from the input provider. None means not supplied."""
    username: Optional[str] = None
    url: Optional[str] = None
    generation: Optional[int] = None
    length: Optional[int] = None
    lower: Optional[bool] = None
    upper: Optional[bool] = None
    digits: Optional[bool] = None
    punctuation: Optional[bool] = None
    spaces: Optional[bool] = None
    include: Optional[str] = None
    exclude: Optional[str] = None

    def apply_to(self, profile: Profile):
        for key, value in self.model_dump(exclude_none=True).items():
            setattr(profile, key, value)


def new_profile(name: str, options: Optional[ProfileOptions] = None) -> Profile:
    profile = Profile(
        scheme=SCHEME_SCRYPT,
        name=name,
        generation=DEFAULT_GENERATION,
        length=DEFAULT_LENGTH,
        lower=True,
        upper=True,
        digits=True,
        punctuation=True,
        spaces=False,
    )
    if options is not None:
        options.apply_to(profile)
    return profile


class Client(BaseModel):
    name: str = ""
    verify: str = ""
    profiles: List[Profile] = Field(default_factory=list)

    modified_at: Optional[datetime] = None
    synced_at: Optional[datetime] = None
    previous_sync_at: Optional[datetime] = None

    @field_validator("profiles", mode="before")
    @classmethod
    def null_profiles(cls, v):
        return [] if v is None else v

    def matches(self, search: str) -> List[Profile]:
        return [p for p in self.profiles if p.matches(search)]

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(mode="json", exclude={"profiles"}, exclude_none=True)
        if self.profiles:
            doc["profiles"] = [p.to_document() for p in self.profiles]
        return doc
