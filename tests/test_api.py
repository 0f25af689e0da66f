import httpx
import pytest

from rideway.main import app, init_services


@pytest.fixture
async def client(session_factory, email_service, geo_lookup):
    init_services(app, session_factory=session_factory, email_service=email_service, geo_lookup=geo_lookup)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup_and_verify(client, signup_data):
    signed_up = await client.post("/api/v1/auth/signup", json=signup_data)
    body = signed_up.json()["data"]
    verified = await client.post(
        "/api/v1/auth/verify-otp", json={"user_id": body["user_id"], "code": body["otp"]}
    )
    return verified.json()["data"]["token"]


async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


async def test_signup_flow(client, geo_lookup, signup_data):
    resp = await client.post(
        "/api/v1/auth/signup", json=signup_data, headers={"X-Forwarded-For": "8.8.8.8, 10.0.0.1"}
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert "error" not in body
    assert geo_lookup.calls == ["8.8.8.8"]

    verify = await client.post(
        "/api/v1/auth/verify-otp", json={"user_id": body["data"]["user_id"], "code": body["data"]["otp"]}
    )
    assert verify.status_code == 200
    assert verify.json()["data"]["user"]["is_verified"] is True

    login = await client.post(
        "/api/v1/auth/login", json={"email": signup_data["email"], "password": signup_data["password"]}
    )
    assert login.status_code == 200
    assert login.json()["data"]["token"]


async def test_signup_from_restricted_country(client, geo_lookup, signup_data):
    geo_lookup.country_code = "IR"

    resp = await client.post("/api/v1/auth/signup", json=signup_data, headers={"X-Real-IP": "5.160.0.1"})

    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "error": {"message": "Registration not allowed from your location", "code": "RESTRICTED_LOCATION"},
    }


async def test_signup_with_location_lookup_down(client, geo_lookup, signup_data):
    geo_lookup.error = True

    resp = await client.post("/api/v1/auth/signup", json=signup_data)

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "LOCATION_UNAVAILABLE"


async def test_duplicate_signup(client, clock, signup_data):
    await client.post("/api/v1/auth/signup", json=signup_data)
    clock.advance(301)

    resp = await client.post("/api/v1/auth/signup", json=signup_data)

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "USER_EXISTS"


async def test_signup_validation_error(client):
    resp = await client.post("/api/v1/auth/signup", json={"email": "not-an-email", "password": "x"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    fields = {item["field"] for item in body["error"]["details"]}
    assert {"email", "password", "name"} <= fields


async def test_login_unverified(client, signup_data):
    signed_up = await client.post("/api/v1/auth/signup", json=signup_data)

    resp = await client.post(
        "/api/v1/auth/login", json={"email": signup_data["email"], "password": signup_data["password"]}
    )

    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "UNVERIFIED_USER"
    assert resp.json()["error"]["details"] == {"user_id": signed_up.json()["data"]["user_id"]}


async def test_login_bad_credentials(client):
    resp = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"})

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


async def test_verify_with_wrong_code(client, signup_data):
    signed_up = await client.post("/api/v1/auth/signup", json=signup_data)
    data = signed_up.json()["data"]
    wrong = "0" * 6 if data["otp"] != "0" * 6 else "1" * 6

    resp = await client.post("/api/v1/auth/verify-otp", json={"user_id": data["user_id"], "code": wrong})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_OTP"


async def test_resend_within_cooldown(client, signup_data):
    signed_up = await client.post("/api/v1/auth/signup", json=signup_data)

    resp = await client.post("/api/v1/auth/resend-otp", json={"user_id": signed_up.json()["data"]["user_id"]})

    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "OTP_RATE_LIMIT"


async def test_signup_when_mail_is_down(client, transport, signup_data):
    transport.fail_times = 10

    resp = await client.post("/api/v1/auth/signup", json=signup_data)

    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "EMAIL_SEND_FAILED"


async def test_profile_requires_token(client):
    resp = await client.get("/api/v1/users/profile")

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


async def test_profile_rejects_bad_token(client):
    resp = await client.get("/api/v1/users/profile", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid or expired token"


async def test_profile_endpoints(client, signup_data):
    token = await signup_and_verify(client, signup_data)
    headers = {"Authorization": f"Bearer {token}"}

    profile = await client.get("/api/v1/users/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["data"]["email"] == signup_data["email"]

    updated = await client.put("/api/v1/users/profile", json={"name": "New Name"}, headers=headers)
    assert updated.json()["data"]["name"] == "New Name"

    wrong = await client.put(
        "/api/v1/users/password",
        json={"current_password": "nope", "new_password": "another-pass"},
        headers=headers,
    )
    assert wrong.status_code == 400

    deleted = await client.delete("/api/v1/users/account", headers=headers)
    assert deleted.status_code == 200

    gone = await client.get("/api/v1/users/profile", headers=headers)
    assert gone.status_code == 401


async def test_product_endpoints(client, signup_data):
    token = await signup_and_verify(client, signup_data)
    headers = {"Authorization": f"Bearer {token}"}

    assert (await client.get("/api/v1/products")).status_code == 401

    created = await client.post(
        "/api/v1/products",
        json={"name": "Simple ride", "type": "simple", "base_price": "7.50"},
        headers=headers,
    )
    assert created.status_code == 201
    product_id = created.json()["data"]["id"]

    listed = await client.get("/api/v1/products", headers=headers)
    assert [p["id"] for p in listed.json()["data"]] == [product_id]

    updated = await client.put(f"/api/v1/products/{product_id}", json={"name": "Basic ride"}, headers=headers)
    assert updated.json()["data"]["name"] == "Basic ride"

    deleted = await client.delete(f"/api/v1/products/{product_id}", headers=headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/api/v1/products/{product_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.parametrize("code", ["١٢٣٤٥٦", "12ab56", "1234567890123"])
async def test_verify_rejects_non_numeric_codes(client, signup_data, code):
    signed_up = await client.post("/api/v1/auth/signup", json=signup_data)

    resp = await client.post(
        "/api/v1/auth/verify-otp", json={"user_id": signed_up.json()["data"]["user_id"], "code": code}
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
