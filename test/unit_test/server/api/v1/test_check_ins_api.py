import pytest
from httpx import AsyncClient

from matlinks.core.database.entities.profiles import UserRole

pytestmark = pytest.mark.asyncio

URL = "/api/v1/check-ins"


async def test_member_checks_in(client: AsyncClient, auth_as, member, location):
    auth_as(member)

    response = await client.post(URL, json={"location_id": location.id})

    assert response.status_code == 201
    body = response.json()
    assert body["profile_id"] == member.id
    assert body["method"] == "MOBILE"


async def test_without_membership(client: AsyncClient, auth_as, make_profile, location):
    auth_as(await make_profile())

    response = await client.post(URL, json={"location_id": location.id})

    assert response.status_code == 403
    assert "No active membership" in response.json()["detail"]


async def test_unknown_location(client: AsyncClient, auth_as, member):
    auth_as(member)

    response = await client.post(URL, json={"location_id": 999})

    assert response.status_code == 404


async def test_instructor_checks_in_member(client: AsyncClient, auth_as, member, location, make_profile):
    instructor = await make_profile(role=UserRole.INSTRUCTOR.value)
    auth_as(instructor)

    response = await client.post(
        URL, json={"location_id": location.id, "profile_id": member.id, "method": "INSTRUCTOR"}
    )

    assert response.status_code == 201
    assert response.json()["checked_in_by"] == instructor.id


async def test_membership_status(client: AsyncClient, auth_as, member, make_profile):
    auth_as(member)
    assert (await client.get(f"{URL}/membership-status")).json() == {"active": True}

    auth_as(await make_profile())
    assert (await client.get(f"{URL}/membership-status")).json() == {"active": False}
