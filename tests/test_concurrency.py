# pylint: disable=redefined-outer-name,unused-import
from concurrent.futures import ThreadPoolExecutor

from fastapi import status

from app.models.booking import Booking, BookingStatus

from tests.conf_tests import (
    client,
    clear_db,
    test_db,
    test_user,
    other_user,
    admin_user,
    auth_headers,
    admin_headers,
    test_room,
    make_booking,
    booking_form,
)

WORKERS = 6


def run_together(calls):
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
        return [future.result() for future in futures]


def test_overlapping_creates_admit_one(auth_headers, test_db, test_room):
    forms = [
        booking_form(test_room.id, 10 + offset % 2, 12 + offset % 2, activity_name=f"Session {offset}")
        for offset in range(WORKERS)
    ]
    calls = [
        lambda form=form: client.post("/bookings/", data=form, headers=auth_headers)
        for form in forms
    ]
    codes = sorted(response.status_code for response in run_together(calls))

    assert codes == [status.HTTP_201_CREATED] + [status.HTTP_409_CONFLICT] * (WORKERS - 1)
    assert test_db.query(Booking).filter(Booking.room_id == test_room.id).count() == 1


def test_overlapping_approvals_admit_one(admin_headers, test_db, make_booking, other_user):
    first = make_booking(10, 12)
    second = make_booking(11, 13, user=other_user)
    calls = [
        lambda booking_id=booking.id: client.patch(
            f"/bookings/{booking_id}/status", json={"status": "approved"}, headers=admin_headers
        )
        for booking in (first, second)
    ]
    codes = sorted(response.status_code for response in run_together(calls))

    assert codes == [status.HTTP_200_OK, status.HTTP_409_CONFLICT]
    test_db.expire_all()
    approved = test_db.query(Booking).filter(Booking.status == BookingStatus.APPROVED.value).count()
    assert approved == 1
