from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .relations import Reference, Relation

# Fields the application reads as dates; stored as ISO strings, returned as datetime.
DEFAULT_DATE_FIELDS = frozenset({"createdAt", "updatedAt", "period", "birthday"})


@dataclass(frozen=True)
class CollectionSchema:
    name: str
    file_name: str
    unique_keys: tuple[str, ...] = ("id",)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    relations: tuple[Relation, ...] = ()
    references: tuple[Reference, ...] = ()
    date_fields: frozenset[str] = DEFAULT_DATE_FIELDS

    @property
    def natural_key(self) -> str:
        return self.unique_keys[0]

    def relation_names(self) -> list[str]:
        return [r.name for r in self.relations]


def _user_of(target: str = "user") -> Relation:
    return Relation("user", target, local_field="userId", foreign_field="userId")


COLLECTIONS: dict[str, CollectionSchema] = {
    s.name: s
    for s in (
        CollectionSchema(
            name="user",
            file_name="users.json",
            unique_keys=("userId", "googleId"),
            defaults={
                "googleId": None,
                "name": None,
                "email": None,
                "image": None,
                "phoneNumber": None,
                "birthday": None,
                "language": None,
                "isLock": False,
                "dataType": None,
            },
            relations=(
                Relation("studentData", "student", local_field="userId", foreign_field="userId"),
                Relation("supplierData", "supplier", local_field="userId", foreign_field="userId"),
                Relation("adminData", "admin", local_field="userId", foreign_field="userId"),
            ),
        ),
        CollectionSchema(
            name="student",
            file_name="students.json",
            unique_keys=("userId",),
            defaults={"lvocabuIDs": [], "lcouponIDs": [], "lfriendIDs": []},
            relations=(_user_of(),),
        ),
        CollectionSchema(
            name="supplier",
            file_name="suppliers.json",
            unique_keys=("userId",),
            relations=(
                _user_of(),
                Relation("stores", "store", local_field="id", foreign_field="supplierId", many=True),
            ),
        ),
        CollectionSchema(
            name="admin",
            file_name="admins.json",
            unique_keys=("userId",),
            relations=(_user_of(),),
        ),
        CollectionSchema(
            name="vocabulary",
            file_name="vocabularies.json",
            unique_keys=("vocabularyId",),
            relations=(
                Relation("words", "word", local_field="id", foreign_field="vocabularyId", many=True),
            ),
        ),
        CollectionSchema(
            name="word",
            file_name="words.json",
            relations=(
                Relation("vocabulary", "vocabulary", local_field="vocabularyId", foreign_field="id"),
            ),
            references=(Reference("vocabularyId", "vocabulary", natural_key="vocabularyId"),),
        ),
        CollectionSchema(
            name="coupon",
            file_name="coupons.json",
            unique_keys=("couponId",),
        ),
        CollectionSchema(
            name="store",
            file_name="stores.json",
            relations=(
                Relation("supplier", "supplier", local_field="supplierId", foreign_field="id"),
            ),
        ),
        CollectionSchema(
            name="comment",
            file_name="comments.json",
        ),
    )
}

# Parents before children, so bulk copies never create dangling references.
COPY_ORDER = ("user", "student", "supplier", "admin", "vocabulary", "word", "coupon", "store", "comment")


def schema_for(name: str) -> CollectionSchema:
    """Registered schema, or an empty one (id key, no relations) for ad hoc collections."""
    schema = COLLECTIONS.get(name)
    if schema is not None:
        return schema
    return CollectionSchema(name=name, file_name=f"{name}.json")
