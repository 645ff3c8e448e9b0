import pytest

from helperhub.models.schemas import Role
from helperhub.routers import auth, profiles, session as session_router
from helperhub.routers.deps import (
    get_business_info_store,
    get_current_identity,
    get_identity_provider,
    get_profile_store,
    get_role_resolver,
    get_session_context,
)
from helperhub.services.identity import IdentityProvider

from conftest import build_client, make_context, make_profile


@pytest.fixture
def identity_provider(stores):
    return IdentityProvider(stores["identities"], stores["tokens"], stores["employers"], stores["job_seekers"])


@pytest.fixture
def auth_client(identity_provider, resolver, business_store):
    return build_client([auth.router, session_router.router], {
        get_identity_provider: lambda: identity_provider,
        get_role_resolver: lambda: resolver,
        get_business_info_store: lambda: business_store,
    })


SIGNUP = {
    "name": "Meera Shah",
    "email": "meera@example.com",
    "password": "secret1",
    "confirm_password": "secret1",
    "phone": "555-0199",
    "role": "employer",
}


class TestAuthAndSession:
    """Signup, login, session description and logout over HTTP"""

    def test_signup_login_session_logout(self, auth_client):
        response = auth_client.post("/api/auth/signup", json=SIGNUP)
        assert response.status_code == 200
        assert response.json()["role"] == "employer"

        login = auth_client.post("/api/auth/login", json={"email": "meera@example.com", "password": "secret1"})
        assert login.status_code == 200
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        info = auth_client.get("/api/session", params={"service_type": "house"}, headers=headers).json()
        assert info["role"] == "employer"
        assert info["destination"] == "providers"
        assert info["service_type"] == "house"

        account = auth_client.get("/api/session/account", headers=headers).json()
        assert account["account"]["name"] == "Meera Shah"
        assert account["business_info"] is None

        assert auth_client.post("/api/auth/logout", headers=headers).status_code == 200
        assert auth_client.get("/api/session", headers=headers).status_code == 401

    def test_new_job_seeker_is_sent_to_profile(self, auth_client):
        token = auth_client.post("/api/auth/signup", json={**SIGNUP, "role": "jobSeeker"}).json()["access_token"]

        info = auth_client.get("/api/session", headers={"Authorization": f"Bearer {token}"}).json()

        assert info["role"] == "jobSeeker"
        assert info["profile_complete"] is False
        assert info["destination"] == "profile_completion"

    def test_signup_password_mismatch(self, auth_client):
        response = auth_client.post("/api/auth/signup", json={**SIGNUP, "confirm_password": "other1"})

        assert response.status_code == 400
        assert response.json()["message"] == "Passwords do not match"

    def test_bad_login(self, auth_client):
        response = auth_client.post("/api/auth/login", json={"email": "meera@example.com", "password": "nope"})

        assert response.status_code == 401


@pytest.fixture
def context_holder():
    return {"context": make_context("js-1", Role.JOB_SEEKER)}


@pytest.fixture
def profile_client(profile_store, business_store, context_holder):
    return build_client(profiles.router, {
        get_profile_store: lambda: profile_store,
        get_business_info_store: lambda: business_store,
        get_session_context: lambda: context_holder["context"],
        get_current_identity: lambda: context_holder["context"].identity,
    })


class TestProfilesRouter:
    """Test cases for profile and business info endpoints"""

    def test_empty_profile_is_prefilled(self, profile_client):
        response = profile_client.get("/api/profile")

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "js-1@example.com"
        assert data["user_type"] == "jobSeeker"
        assert data["first_name"] == ""

    def test_save_and_fetch_profile(self, profile_client):
        payload = {"first_name": "Ravi", "last_name": "Kumar", "phone": "555-0101",
                   "selected_categories": ["cook"], "experience_level": "expert"}

        response = profile_client.put("/api/profile", json=payload)
        assert response.status_code == 200

        fetched = profile_client.get("/api/profiles/js-1").json()
        assert fetched["first_name"] == "Ravi"
        assert fetched["experience_level"] == "expert"

    def test_save_without_categories(self, profile_client):
        payload = {"first_name": "Ravi", "last_name": "Kumar", "phone": "555-0101"}

        response = profile_client.put("/api/profile", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Please select at least one service category"

    def test_upload_image(self, profile_client, collections):
        collections["profiles"].docs.append(make_profile("js-1"))

        response = profile_client.post(
            "/api/profile/image",
            files={"file": ("me.png", b"\x89PNG data", "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["profile_image"] == "/media/profile_images/js-1"

    def test_unknown_profile(self, profile_client):
        assert profile_client.get("/api/profiles/ghost").status_code == 404

    def test_business_info_for_employer(self, profile_client, context_holder):
        context_holder["context"] = make_context("emp-1", Role.EMPLOYER)

        assert profile_client.get("/api/business-info").status_code == 404

        saved = profile_client.put("/api/business-info", json={
            "company_name": "Shah Caterers",
            "business_type": "house-services",
            "location": "Mumbai",
        })
        assert saved.status_code == 200

        fetched = profile_client.get("/api/business-info").json()
        assert fetched["company_name"] == "Shah Caterers"
        assert fetched["business_type"] == "house-services"

    def test_business_info_forbidden_for_job_seeker(self, profile_client):
        response = profile_client.put("/api/business-info", json={"company_name": "Nope"})

        assert response.status_code == 403
