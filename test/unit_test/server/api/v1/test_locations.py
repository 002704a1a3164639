import pytest
from httpx import AsyncClient

from matlinks.core.database.entities.class_types import ClassSchedule, ClassType
from matlinks.core.database.entities.gyms import Gym, Location

pytestmark = pytest.mark.asyncio

URL = "/api/v1/admin/locations"


@pytest.fixture(autouse=True)
def as_admin(auth_as, admin):
    auth_as(admin)


async def test_create_location(client: AsyncClient, gym):
    response = await client.post(
        URL,
        json={"gym_id": gym.id, "name": "Uptown", "city": "Springfield", "latitude": 40.7, "longitude": -74.0},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["gym_id"] == gym.id
    assert body["latitude"] == 40.7


async def test_create_for_unknown_gym(client: AsyncClient):
    response = await client.post(URL, json={"gym_id": 999, "name": "Nowhere"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Gym 999 not found"


async def test_create_rejects_bad_coordinates(client: AsyncClient, gym):
    response = await client.post(URL, json={"gym_id": gym.id, "name": "Moon", "latitude": 120})
    assert response.status_code == 422


async def test_list_filters_by_gym(client: AsyncClient, session, location):
    other = Gym(name="Second Academy")
    session.add(other)
    await session.commit()
    session.add(Location(gym_id=other.id, name="Harbor"))
    await session.commit()

    response = await client.get(URL, params={"gym_id": location.gym_id})

    assert [row["name"] for row in response.json()] == ["Downtown"]
    assert len((await client.get(URL)).json()) == 2


async def test_update_location(client: AsyncClient, location):
    response = await client.patch(f"{URL}/{location.id}", json={"phone": "555-0100"})
    assert response.status_code == 200
    assert response.json()["phone"] == "555-0100"
    assert response.json()["city"] == "Springfield"


async def test_update_to_unknown_gym(client: AsyncClient, location):
    response = await client.patch(f"{URL}/{location.id}", json={"gym_id": 999})
    assert response.status_code == 404


async def test_missing_location(client: AsyncClient):
    response = await client.get(f"{URL}/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Location 999 not found"


async def test_delete_location(client: AsyncClient, session, location):
    response = await client.delete(f"{URL}/{location.id}")
    assert response.status_code == 204
    assert await session.get(Location, location.id) is None


async def test_delete_scheduled_location_conflicts(client: AsyncClient, session, location):
    class_type = ClassType(name="Fundamentals")
    session.add(class_type)
    await session.commit()
    session.add(
        ClassSchedule(
            class_type_id=class_type.id, location_id=location.id, day_of_week=1, start_time="18:00", end_time="19:00"
        )
    )
    await session.commit()

    response = await client.delete(f"{URL}/{location.id}")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete location: it is used by existing schedules"
