import pytest

from helperhub.models.schemas import Role
from helperhub.routers import providers
from helperhub.routers.deps import (
    get_current_identity,
    get_matching_engine,
    get_review_store,
    get_session_context,
)

from conftest import build_client, make_context, make_profile


@pytest.fixture
def session(collections):
    collections["profiles"].docs.extend([
        make_profile("js-1", categories=("cook", "maid"), first_name="Ravi"),
        make_profile("js-2", categories=("gardener",), first_name="Lata"),
        make_profile("js-3", categories=(), first_name="Nobody"),
        make_profile("emp-1", role=Role.EMPLOYER, first_name="Meera"),
    ])
    return {"context": make_context("emp-1", Role.EMPLOYER)}


@pytest.fixture
def client(engine, review_store, session):
    return build_client(providers.router, {
        get_matching_engine: lambda: engine,
        get_review_store: lambda: review_store,
        get_session_context: lambda: session["context"],
        get_current_identity: lambda: session["context"].identity,
    })


class TestProvidersRouter:
    """Test cases for provider discovery and reviews"""

    def test_catalog(self, client):
        response = client.get("/api/catalog")

        assert response.status_code == 200
        data = response.json()
        assert data["categories"][0] == {"id": "all", "name": "All Categories"}
        assert {"id": "petcare", "name": "Pet Caretaker"} in data["categories"]
        assert {"id": "house", "title": "House Service Providers"} in data["service_types"]

    def test_employer_lists_all_eligible(self, client):
        response = client.get("/api/providers/house")

        assert response.status_code == 200
        assert [p["first_name"] for p in response.json()] == ["Ravi", "Lata"]

    def test_category_filter(self, client):
        response = client.get("/api/providers/short-term", params={"category": "gardener"})

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["js-2"]

    def test_unknown_category(self, client):
        response = client.get("/api/providers/house", params={"category": "pilot"})

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "category"

    def test_unknown_service_type(self, client):
        response = client.get("/api/providers/space")

        assert response.status_code == 422

    def test_incomplete_job_seeker_is_redirected(self, client, session):
        session["context"] = make_context("js-3", Role.JOB_SEEKER, profile=make_profile("js-3", phone=""))

        response = client.get("/api/providers/house")

        assert response.status_code == 403
        assert response.json()["error"]["details"]["redirect_to"] == "profile_completion"

    def test_complete_job_seeker_may_browse(self, client, session):
        session["context"] = make_context("js-1", Role.JOB_SEEKER, profile=make_profile("js-1"))

        response = client.get("/api/providers/business", params={"category": "all"})

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_review_round_trip(self, client, collections):
        collections["service_requests"].docs.append({
            "request_id": "req-1",
            "employer_id": "emp-1",
            "job_seeker_id": "js-1",
            "service_type": "house",
            "status": "accepted",
        })

        response = client.post("/api/providers/js-1/reviews", json={"rating": 4, "comment": "Great food"})
        assert response.status_code == 200

        reviews = client.get("/api/providers/js-1/reviews").json()
        assert [r["comment"] for r in reviews] == ["Great food"]
        [provider] = client.get("/api/providers/house", params={"category": "cook"}).json()
        assert provider["average_rating"] == 4.0
        assert provider["review_count"] == 1

    def test_review_without_accepted_request(self, client):
        response = client.post("/api/providers/js-2/reviews", json={"rating": 5})

        assert response.status_code == 403

    def test_review_rating_out_of_range(self, client):
        response = client.post("/api/providers/js-1/reviews", json={"rating": 9})

        assert response.status_code == 422
