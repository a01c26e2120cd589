from __future__ import annotations

from datetime import date, datetime

from localdb.models import CouponRecord, DocumentRecord, StudentRecord, UserRecord, record_for


def test_record_for_gives_typed_access(client):
    client.user.create(data={"userId": "U1", "name": "Ann", "favouriteColour": "teal"})
    client.student.create(data={"userId": "U1"})

    user = record_for("user", client.user.find_unique(where={"userId": "U1"}, include={"studentData": True}))
    assert isinstance(user, UserRecord)
    assert user.userId == "U1"
    assert user.isLock is False
    assert isinstance(user.createdAt, datetime)
    # undeclared fields and relations ride along as extras
    assert user.favouriteColour == "teal"
    assert user.studentData["userId"] == "U1"


def test_coupon_period_is_a_datetime(client):
    client.coupon.create(data={"couponId": "C1", "period": "2031-05-01T00:00:00.000Z"})
    coupon = record_for("coupon", client.coupon.find_unique(where={"couponId": "C1"}))
    assert isinstance(coupon, CouponRecord)
    assert coupon.period.year == 2031


def test_to_data_drops_bookkeeping_fields(client):
    created = client.student.create(data={"userId": "U1", "lvocabuIDs": ["V1"]})
    data = record_for("student", created).to_data()
    assert "id" not in data and "createdAt" not in data
    assert data["lvocabuIDs"] == ["V1"]
    assert isinstance(record_for("student", created), StudentRecord)


def test_unknown_collection_falls_back_to_base_record():
    rec = record_for("sysPara", {"id": "x", "key": "quota"})
    assert type(rec) is DocumentRecord
    assert rec.key == "quota"


def test_records_are_part_of_the_public_api():
    import localdb

    assert localdb.record_for is record_for
    assert localdb.RECORD_TYPES["user"] is localdb.UserRecord
    assert {"UserRecord", "DocumentRecord", "record_for"} <= set(localdb.__all__)


def test_user_birthday_may_be_a_plain_date(client):
    client.user.create(data={"userId": "U1", "birthday": date(2000, 5, 17)})
    user = record_for("user", client.user.find_unique(where={"userId": "U1"}))
    assert user.birthday == date(2000, 5, 17)
