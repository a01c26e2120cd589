from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class DocumentRecord(BaseModel):
    """
    Typed view over a facade result. The engine itself stays schema-agnostic;
    these models only give call sites attribute access and validation. Fields
    not declared here are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    createdAt: datetime | None = None
    updatedAt: datetime | None = None

    def to_data(self) -> dict[str, Any]:
        """Caller fields only, ready to pass back as create/update data."""
        return self.model_dump(exclude={"id", "createdAt", "updatedAt"})


class UserRecord(DocumentRecord):
    userId: str
    googleId: str | None = None
    name: str | None = None
    email: str | None = None
    image: str | None = None
    phoneNumber: str | None = None
    birthday: datetime | date | None = None
    language: str | None = None
    isLock: bool = False
    dataType: str | None = None


class StudentRecord(DocumentRecord):
    userId: str
    lvocabuIDs: list[str] = Field(default_factory=list)
    lcouponIDs: list[str] = Field(default_factory=list)
    lfriendIDs: list[str] = Field(default_factory=list)
    paraGame: dict[str, Any] | None = None
    payments: Any = None


class SupplierRecord(DocumentRecord):
    userId: str


class AdminRecord(DocumentRecord):
    userId: str


class VocabularyRecord(DocumentRecord):
    vocabularyId: str
    name: str | None = None
    langUse: str | None = None
    langExp: str | None = None
    copyrights: str | None = None
    establisher: str | None = None
    public: bool | None = None


class WordRecord(DocumentRecord):
    # Internal id of the owning Vocabulary, not its vocabularyId.
    vocabularyId: str
    word: str | None = None
    spelling: str | None = None
    explanation: str | None = None
    partOfSpeech: str | None = None
    sentence: str | None = None


class CouponRecord(DocumentRecord):
    couponId: str
    name: str | None = None
    period: datetime | None = None
    link: str | None = None
    text: str | None = None
    picture: str | None = None


class StoreRecord(DocumentRecord):
    supplierId: str | None = None
    name: str | None = None
    location: str | None = None
    website: str | None = None
    businessHours: Any = None


class CommentRecord(DocumentRecord):
    pass


RECORD_TYPES: dict[str, type[DocumentRecord]] = {
    "user": UserRecord,
    "student": StudentRecord,
    "supplier": SupplierRecord,
    "admin": AdminRecord,
    "vocabulary": VocabularyRecord,
    "word": WordRecord,
    "coupon": CouponRecord,
    "store": StoreRecord,
    "comment": CommentRecord,
}


def record_for(collection: str, doc: Mapping[str, Any]) -> DocumentRecord:
    cls = RECORD_TYPES.get(collection, DocumentRecord)
    return cls.model_validate(dict(doc))
