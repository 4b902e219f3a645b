import threading

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.exc import OperationalError

from mottoparty import create_app
from mottoparty.extensions import db
from mottoparty.models import Participant
from mottoparty.services.raffle import RaffleCoordinator
from mottoparty.services.repository import SQLAlchemyRaffleRepository
from mottoparty.views import auth as auth_views

from conftest import login, register


MOTTOS = {"amy": "Carpe diem", "bo": "Stay hungry", "cal": "Less is more"}


@pytest.fixture
def party(client):
    """Everyone registered, every non-organizer has a motto, nobody logged in."""
    for name, text in MOTTOS.items():
        assert register(client, name.upper()).status_code == 201
        login(client, name)
        assert client.post("/mottos", json={"text": text}).status_code == 201
    assert register(client, "Antonia").status_code == 201
    client.post("/auth/logout")
    return client


def test_landing_reports_status(client):
    body = client.get("/").get_json()
    assert body == {
        "raffle_status": "not_started",
        "num_participants": 0,
        "num_mottos": 0,
        "organizer": "antonia",
    }


def test_register_validates_and_rejects_duplicates(client):
    assert register(client, "").status_code == 400
    assert client.post("/auth/register", json={"name": "amy"}).status_code == 400
    assert register(client, " Amy ").get_json()["user"] == {"name": "amy"}
    assert register(client, "AMY").status_code == 409


def test_login_checks_password(client):
    register(client, "amy")
    assert login(client, "amy", "wrong").status_code == 401
    assert login(client, "nobody").status_code == 401
    resp = login(client, "AMY")
    assert resp.status_code == 200
    assert resp.get_json()["user"] == {"name": "amy"}


def test_mottos_require_login(client):
    assert client.get("/mottos").status_code == 401
    assert client.post("/mottos", json={"text": "x"}).status_code == 401
    assert client.post("/raffle/start").status_code == 401


def test_submit_and_update_own_motto(client):
    register(client, "amy")
    login(client, "amy")

    assert client.get("/mottos/mine").status_code == 404
    assert client.post("/mottos", json={"text": "   "}).status_code == 400

    resp = client.post("/mottos", json={"text": "First"})
    assert resp.status_code == 201
    resp = client.post("/mottos", json={"text": "Second"})
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Motto updated."

    assert client.get("/mottos/mine").get_json()["text"] == "Second"
    assert [m["name"] for m in client.get("/mottos").get_json()] == ["amy"]


def test_only_the_organizer_starts_the_raffle(party):
    login(party, "amy")
    resp = party.post("/raffle/start")
    assert resp.status_code == 403
    assert "organizer" in resp.get_json()["error"]
    assert party.get("/raffle/status").get_json() == {"status": "not_started"}


def test_full_raffle_flow(party):
    login(party, "antonia")
    resp = party.post("/raffle/start")
    assert resp.status_code == 200
    assignments = resp.get_json()["assignments"]
    assert {a["participant"] for a in assignments} == {"amy", "bo", "cal", "antonia"}

    assert party.post("/raffle/start").status_code == 409
    all_results = party.get("/raffle/results").get_json()
    assert sorted(all_results, key=lambda a: a["participant"]) == sorted(
        assignments, key=lambda a: a["participant"]
    )

    for name, own in MOTTOS.items():
        login(party, name)
        mine = party.get("/raffle/my-result").get_json()
        assert mine["participant"] == name
        assert mine["text"] != own
        assert mine["text"] in MOTTOS.values()

    assert party.get("/raffle/results").status_code == 403
    assert party.post("/mottos", json={"text": "late"}).status_code == 409
    assert register(party, "dan").status_code == 409
    assert party.get("/raffle/status").get_json() == {"status": "completed"}


def test_raffle_without_mottos(client):
    register(client, "antonia")
    login(client, "antonia")

    resp = client.post("/raffle/start")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No mottos have been submitted yet."


def test_my_result_before_raffle(client):
    register(client, "amy")
    login(client, "amy")
    assert client.get("/raffle/my-result").status_code == 404


def test_csrf_is_enforced_for_json_posts(app_config):
    app_config["WTF_CSRF_ENABLED"] = True
    app = create_app(app_config)
    with app.app_context():
        db.create_all()
        client = app.test_client()

        assert register(client, "amy").status_code == 400

        token = client.get("/auth/csrf-token").get_json()["csrf_token"]
        resp = client.post(
            "/auth/register",
            json={"name": "amy", "password": "hunter2"},
            headers={"X-CSRFToken": token},
        )
        assert resp.status_code == 201
        db.session.remove()
        db.drop_all()


def test_raffle_finishing_mid_registration_rejects_it(app, client, add_participant, monkeypatch):
    add_participant("amy", "A")
    real_hash = auth_views.hash_password

    def draw_then_hash(password):
        def draw():
            with app.app_context():
                RaffleCoordinator(SQLAlchemyRaffleRepository(), "antonia").run("antonia")

        t = threading.Thread(target=draw)
        t.start()
        t.join(timeout=30)
        return real_hash(password)

    monkeypatch.setattr(auth_views, "hash_password", draw_then_hash)

    resp = register(client, "dan")

    assert resp.status_code == 409
    assert resp.get_json() == {"error": "Registration is closed because the raffle has been run."}
    assert Participant.query.filter_by(name="dan").first() is None


def test_status_reports_unavailable_store(client, monkeypatch):
    def execute(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("could not connect"))

    monkeypatch.setattr(db.session, "execute", execute)

    resp = client.get("/raffle/status")

    assert resp.status_code == 503
    assert resp.get_json() == {"error": "The data store could not be reached. Please try again later."}


def test_database_errors_outside_the_repository_are_json(client, monkeypatch):
    def boom():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(auth_views, "raffle_completed", boom)

    resp = register(client, "amy")

    assert resp.status_code == 503
    assert "error" in resp.get_json()


def test_unreadable_results_are_a_json_error(app, party):
    login(party, "antonia")
    assert party.post("/raffle/start").status_code == 200

    app.config["ASSIGNMENT_ENC_KEY"] = Fernet.generate_key().decode()

    resp = party.get("/raffle/results")
    assert resp.status_code == 500
    assert "encryption key" in resp.get_json()["error"]

    login(party, "amy")
    assert party.get("/raffle/my-result").status_code == 500
