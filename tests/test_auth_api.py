"""
Newsdesk Backend — Auth API Tests
===================================

Test Strategy:
    ✅ Register returns a usable token; duplicate email is 409
    ✅ Login succeeds case-insensitively, wrong password is 401
    ✅ /me requires a valid bearer token
    ✅ register-admin requires an admin caller
"""

from datetime import timedelta

from newsdesk.security import create_access_token, decode_access_token, hash_password, verify_password


def auth(token):
    return {"Authorization": f"Bearer {token}"}


REGISTRATION = {"name": "Ada", "email": "Ada@Example.com", "password": "lovelace"}


class TestRegisterLogin:
    async def test_register_returns_token(self, client):
        response = await client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["role"] == "user"
        assert decode_access_token(body["token"])["sub"] == body["user"]["id"]

    async def test_duplicate_email_conflicts(self, client):
        await client.post("/api/auth/register", json=REGISTRATION)

        response = await client.post(
            "/api/auth/register", json=dict(REGISTRATION, email="ada@example.com")
        )

        assert response.status_code == 409
        assert response.json()["message"] == "User already exists"

    async def test_login(self, client):
        await client.post("/api/auth/register", json=REGISTRATION)

        response = await client.post(
            "/api/auth/login", json={"email": "ADA@example.com", "password": "lovelace"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Ada"

    async def test_wrong_password(self, client):
        await client.post("/api/auth/register", json=REGISTRATION)

        response = await client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "babbage"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    async def test_short_password_is_422(self, client):
        response = await client.post("/api/auth/register", json=dict(REGISTRATION, password="abc"))

        assert response.status_code == 422


class TestCurrentUser:
    async def test_me(self, client, user_token):
        response = await client.get("/api/auth/me", headers=auth(user_token))

        assert response.status_code == 200
        assert response.json()["email"] == "writer@example.com"

    async def test_me_without_token(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_me_with_expired_token(self, client, user_token):
        claims = decode_access_token(user_token)
        expired = create_access_token(claims["sub"], claims["role"], timedelta(minutes=-1))

        response = await client.get("/api/auth/me", headers=auth(expired))

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"


class TestRegisterAdmin:
    NEW_ADMIN = {"name": "Grace", "email": "grace@example.com", "password": "hopper"}

    async def test_requires_token(self, client):
        response = await client.post("/api/auth/register-admin", json=self.NEW_ADMIN)

        assert response.status_code == 401

    async def test_requires_admin_role(self, client, user_token):
        response = await client.post(
            "/api/auth/register-admin", json=self.NEW_ADMIN, headers=auth(user_token)
        )

        assert response.status_code == 403

    async def test_admin_creates_admin(self, client, admin_token):
        response = await client.post(
            "/api/auth/register-admin", json=self.NEW_ADMIN, headers=auth(admin_token)
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Admin user created"
        assert response.json()["user"]["role"] == "admin"


class TestPasswordHashing:
    def test_hash_round_trip(self):
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_unknown_hash_format(self):
        assert not verify_password("secret123", "not-a-hash")
