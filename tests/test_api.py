"""End-to-end tests through the HTTP API."""

from datetime import datetime, timedelta, timezone

import pytest

from eventreg.models.user import UserRole

API = "/api/v1"


async def login(client, email, password="correct horse"):
    response = await client.post(f"{API}/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


async def create_event(client, headers, **overrides):
    payload = {
        "name": "Tech Conference",
        "date": "2030-06-15T09:00:00Z",
        "capacity": 2,
        "ticketPrice": 100,
        "dynamicPricing": True,
    }
    payload.update(overrides)
    return await client.post(f"{API}/events/create", json=payload, headers=headers)


class TestAuthEndpoints:
    async def test_register_and_login(self, client):
        response = await client.post(
            f"{API}/register",
            json={"username": "alice", "email": "alice@example.com", "password": "pw"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "alice@example.com"
        assert body["role"] == "user"
        assert "hashedPassword" not in body
        assert "createdAt" in body

        body = await login(client, "alice@example.com", "pw")
        assert body["role"] == "user"
        assert body["tokenType"] == "bearer"
        assert body["token"]

    async def test_register_duplicate_email(self, client):
        payload = {"username": "a", "email": "a@example.com", "password": "pw"}
        await client.post(f"{API}/register", json=payload)

        response = await client.post(f"{API}/register", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "DUPLICATE_EMAIL"

    async def test_register_missing_field(self, client):
        response = await client.post(f"{API}/register", json={"email": "a@example.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_login_unknown_email(self, client):
        response = await client.post(
            f"{API}/login", json={"email": "ghost@example.com", "password": "pw"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_EMAIL"

    async def test_login_wrong_password(self, client, make_account):
        user = await make_account()

        response = await client.post(
            f"{API}/login", json={"email": user.email, "password": "nope"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    async def test_logout_revokes_token(self, client, make_account):
        user = await make_account()
        token = (await login(client, user.email))["token"]
        headers = {"Authorization": f"Bearer {token}"}

        response = await client.get(f"{API}/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}

        response = await client.get(f"{API}/events", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == "REVOKED_TOKEN"

        response = await client.get(f"{API}/logout", headers=headers)
        assert response.status_code == 200

    async def test_logout_without_token(self, client):
        response = await client.get(f"{API}/logout")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_TOKEN"


class TestAuthGuards:
    async def test_missing_token(self, client):
        response = await client.get(f"{API}/events")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_invalid_token(self, client):
        response = await client.get(
            f"{API}/events", headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    async def test_user_cannot_create_event(self, client, make_account, auth_headers):
        user = await make_account(UserRole.USER)

        response = await create_event(client, auth_headers(user))

        assert response.status_code == 401
        assert response.json()["code"] == "FORBIDDEN"


class TestEventEndpoints:
    async def test_event_lifecycle(self, client, make_account, auth_headers):
        organizer = await make_account(UserRole.ORGANIZER)
        attendee = await make_account(UserRole.USER)
        org_headers = auth_headers(organizer)
        att_headers = auth_headers(attendee)

        response = await create_event(client, org_headers)
        assert response.status_code == 201
        event = response.json()
        assert event["ticketPrice"] == 100
        assert event["dynamicPricing"] is True
        assert event["attendees"] == []
        assert event["createdBy"] == organizer.id
        event_id = event["id"]

        response = await client.post(
            f"{API}/events/register/{event_id}", headers=att_headers
        )
        assert response.status_code == 200
        receipt = response.json()
        assert receipt["attendeesCount"] == 1
        assert receipt["ticketPrice"] == 140

        response = await client.post(
            f"{API}/events/register/{event_id}", headers=att_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_REGISTERED"

        response = await client.get(f"{API}/events/{event_id}", headers=att_headers)
        assert response.status_code == 200
        assert response.json()["attendees"] == [attendee.id]

        response = await client.get(
            f"{API}/events/capacity/{event_id}", headers=att_headers
        )
        assert response.json() == {"percentageFilled": 50.0}

        response = await client.post(
            f"{API}/events/{event_id}/ratings", json={"rating": 5}, headers=att_headers
        )
        assert response.status_code == 200
        assert response.json()["ratings"] == [5.0]

        response = await client.get(f"{API}/events/aggregate", headers=att_headers)
        assert response.json() == [
            {"name": "Tech Conference", "attendeesCount": 1, "avgRating": 5.0}
        ]

        response = await client.get(f"{API}/events", headers=org_headers)
        assert response.json() == [{"name": "Tech Conference", "attendeesCount": 1}]

        response = await client.get(
            f"{API}/events/registered/{attendee.id}", headers=att_headers
        )
        assert [e["id"] for e in response.json()] == [event_id]

        response = await client.delete(f"{API}/events/{event_id}", headers=org_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "HAS_ATTENDEES"

    async def test_sold_out(self, client, make_account, auth_headers):
        organizer = await make_account(UserRole.ORGANIZER)
        first, second = await make_account(), await make_account()
        event_id = (await create_event(client, auth_headers(organizer), capacity=1)).json()["id"]

        await client.post(f"{API}/events/register/{event_id}", headers=auth_headers(first))
        response = await client.post(
            f"{API}/events/register/{event_id}", headers=auth_headers(second)
        )

        assert response.status_code == 400
        assert response.json()["code"] == "SOLD_OUT"

    async def test_cancel_event(self, client, make_account, auth_headers):
        organizer = await make_account(UserRole.ORGANIZER)
        headers = auth_headers(organizer)
        event_id = (await create_event(client, headers)).json()["id"]

        response = await client.delete(f"{API}/events/{event_id}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Event cancelled successfully"}

        response = await client.get(f"{API}/events/{event_id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["code"] == "EVENT_NOT_FOUND"

    async def test_cancel_too_close(self, client, make_account, make_event, auth_headers):
        organizer = await make_account(UserRole.ORGANIZER)
        event = await make_event(organizer, days_ahead=2)

        response = await client.delete(
            f"{API}/events/{event.id}", headers=auth_headers(organizer)
        )

        assert response.status_code == 400
        assert response.json()["code"] == "TOO_CLOSE_TO_CANCEL"

    @pytest.mark.parametrize(
        "overrides, code",
        [
            ({"name": None}, "MISSING_FIELD"),
            ({"capacity": 0}, "INVALID_CAPACITY"),
            ({"ticketPrice": -5}, "INVALID_PRICE"),
            ({"capacity": 2.5}, "INVALID_CAPACITY"),
            ({"capacity": "many"}, "INVALID_CAPACITY"),
            ({"capacity": "5"}, "INVALID_CAPACITY"),
            ({"ticketPrice": "abc"}, "INVALID_PRICE"),
            ({"date": "not a date"}, "VALIDATION_ERROR"),
        ],
    )
    async def test_create_event_validation(
        self, client, make_account, auth_headers, overrides, code
    ):
        organizer = await make_account(UserRole.ORGANIZER)

        response = await create_event(client, auth_headers(organizer), **overrides)

        assert response.status_code == 400
        assert response.json()["code"] == code

    async def test_event_date_is_returned_in_utc(
        self, client, make_account, auth_headers
    ):
        organizer = await make_account(UserRole.ORGANIZER)
        headers = auth_headers(organizer)
        event_id = (await create_event(client, headers)).json()["id"]

        response = await client.get(f"{API}/events/{event_id}", headers=headers)

        assert response.status_code == 200
        stored = datetime.fromisoformat(response.json()["date"].replace("Z", "+00:00"))
        assert stored == datetime(2030, 6, 15, 9, 0, tzinfo=timezone.utc)
        assert stored.utcoffset() == timedelta(0)

    async def test_register_unknown_event(self, client, make_account, auth_headers):
        user = await make_account()

        response = await client.post(
            f"{API}/events/register/999", headers=auth_headers(user)
        )

        assert response.status_code == 404

    async def test_events_created_by_other_account(
        self, client, make_account, auth_headers
    ):
        organizer = await make_account(UserRole.ORGANIZER)
        user = await make_account()

        response = await client.get(
            f"{API}/events/created/{organizer.id}", headers=auth_headers(user)
        )

        assert response.status_code == 401
        assert response.json()["code"] == "FORBIDDEN"

    async def test_rating_by_non_attendee(
        self, client, make_account, make_event, auth_headers
    ):
        organizer = await make_account(UserRole.ORGANIZER)
        event = await make_event(organizer)

        response = await client.post(
            f"{API}/events/{event.id}/ratings",
            json={"rating": 3},
            headers=auth_headers(organizer),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_ATTENDEE"


class TestServiceEndpoints:
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True
        assert "X-Request-ID" in response.headers

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    async def test_metrics(self, client):
        await client.get("/")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
