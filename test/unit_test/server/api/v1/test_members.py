import pytest
from httpx import AsyncClient

from matlinks.auth.client import AuthUser
from matlinks.core.database.entities.profiles import Profile

pytestmark = pytest.mark.asyncio

URL = "/api/v1/admin/members"


@pytest.fixture(autouse=True)
def as_admin(auth_as, admin):
    auth_as(admin)


async def test_list_members_by_role(client: AsyncClient, admin, member):
    everyone = [row["full_name"] for row in (await client.get(URL)).json()]
    students = (await client.get(URL, params={"role": "student"})).json()

    assert everyone == ["Ada Admin", "Sam Student"]
    assert [row["id"] for row in students] == [member.id]


async def test_list_members_by_location(client: AsyncClient, member, make_profile):
    await make_profile()

    response = await client.get(URL, params={"location_id": member.primary_location_id})

    assert [row["id"] for row in response.json()] == [member.id]


async def test_list_rejects_unknown_role(client: AsyncClient):
    assert (await client.get(URL, params={"role": "janitor"})).status_code == 422


async def test_get_member(client: AsyncClient, member):
    response = await client.get(f"{URL}/{member.id}")
    assert response.status_code == 200
    assert response.json()["subscription_status"] == "active"

    response = await client.get(f"{URL}/nobody")
    assert response.status_code == 404
    assert response.json()["detail"] == "Member nobody not found"


async def test_promote_to_instructor(client: AsyncClient, session, member):
    response = await client.patch(f"{URL}/{member.id}", json={"role": "instructor", "phone": "555-0101"})

    assert response.status_code == 200
    assert response.json()["role"] == "instructor"
    await session.refresh(member)
    assert member.role == "instructor"


async def test_update_with_unknown_references(client: AsyncClient, member):
    response = await client.patch(f"{URL}/{member.id}", json={"primary_location_id": 999})
    assert response.status_code == 404
    assert response.json()["detail"] == "Location 999 not found"

    response = await client.patch(f"{URL}/{member.id}", json={"current_plan_id": 999})
    assert response.json()["detail"] == "Membership plan 999 not found"


async def test_add_existing_member_moves_location(client: AsyncClient, auth_client, make_profile, location):
    existing = await make_profile(email="walkin@example.com")

    response = await client.post(URL, json={"email": "WalkIn@Example.com", "location_id": location.id})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == existing.id
    assert body["primary_location_id"] == location.id
    assert body["current_gym_id"] == location.gym_id
    auth_client.invite_user.assert_not_awaited()


async def test_add_new_member_sends_invite(client: AsyncClient, session, auth_client, location):
    auth_client.invite_user.return_value = AuthUser(id="invited-1", email="new@example.com")

    response = await client.post(URL, json={"email": "new@example.com", "full_name": "Nia New", "location_id": location.id})

    assert response.status_code == 200
    auth_client.invite_user.assert_awaited_once_with("new@example.com", redirect_to="http://localhost:3000/auth/confirm")
    profile = await session.get(Profile, "invited-1")
    assert profile.role == "student"
    assert profile.full_name == "Nia New"
    assert profile.current_location_id == location.id


async def test_add_member_to_unknown_location(client: AsyncClient, auth_client):
    response = await client.post(URL, json={"email": "new@example.com", "location_id": 999})
    assert response.status_code == 404
    auth_client.invite_user.assert_not_awaited()


async def test_add_member_rejects_bad_email(client: AsyncClient, location):
    assert (await client.post(URL, json={"email": "not-an-email", "location_id": location.id})).status_code == 422
