import pytest

from tvguide.errors import UpstreamUnavailable
from tvguide.main import app


class StubGenerator:
    def __init__(self, text=None):
        self.text = text

    async def generate_synopsis(self, show_name, season, episode, episode_name, overview):
        if self.text is None:
            raise UpstreamUnavailable("LLM down", service="llm")
        return self.text


class StubTMDB:
    async def get_details(self, tmdb_id, media_type):
        raise UpstreamUnavailable("TMDB down", service="tmdb")

    async def get_tv_episode(self, series_id, season_number, episode_number):
        return None

    async def get_tv_details(self, tmdb_id):
        return None


@pytest.fixture
def ids(profile, show, movie):
    return {"profile": profile.id, "show": show.id, "movie": movie.id, "household": profile.household_id}


def _add(client, ids, title_key, weekday):
    return client.post("/api/schedule", json={
        "profile_id": ids["profile"],
        "tracked_title_id": ids[title_key],
        "weekday": weekday,
        "household_id": ids["household"],
    })


def test_schedule_flow(client, ids):
    first = _add(client, ids, "show", 1)
    second = _add(client, ids, "movie", 1)
    assert first.status_code == 201
    assert second.json()["slot_order"] == 1

    resp = client.put("/api/schedule/reorder", json={"entry_id": second.json()["id"], "new_slot_order": 0, "household_id": ids["household"]})
    assert resp.status_code == 200

    week = client.get("/api/schedule", params={"profile_id": ids["profile"], "household_id": ids["household"]}).json()
    assert [e["id"] for e in week["days"]["1"]] == [first.json()["id"], second.json()["id"]]
    assert len(week["days"]) == 7


def test_schedule_error_taxonomy(client, ids):
    bad_day = _add(client, ids, "show", 9)
    assert bad_day.status_code == 400
    assert bad_day.json()["code"] == "VALIDATION_ERROR"

    assert _add(client, ids, "show", 2).status_code == 201
    duplicate = _add(client, ids, "show", 2)
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Title is already scheduled on that day", "code": "DUPLICATE_ENTRY"}

    missing = client.delete("/api/schedule/9999", params={"household_id": ids["household"]})
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_malformed_body_is_validation_error(client):
    resp = client.post("/api/schedule", json={"weekday": 1})
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_move_and_toggle(client, ids):
    entry = _add(client, ids, "show", 1).json()

    moved = client.put("/api/schedule/move", json={"entry_id": entry["id"], "new_weekday": 3, "household_id": ids["household"]})
    assert moved.json()["weekday"] == 3

    toggled = client.patch(f"/api/schedule/{entry['id']}", json={"enabled": False, "household_id": ids["household"]})
    assert toggled.json()["enabled"] is False


def test_week_view_degrades_without_tmdb(client, ids, monkeypatch):
    monkeypatch.setattr(app.state, "tmdb", StubTMDB())
    _add(client, ids, "show", 4)
    _add(client, ids, "movie", 4)

    resp = client.get("/api/schedule/week-view", params={"profile_id": ids["profile"], "household_id": ids["household"]})

    assert resp.status_code == 200
    thursday = resp.json()["days"][4]["entries"]
    assert [e["runtime"] for e in thursday] == [30, 120]
    assert thursday[1]["start_label"] == "6:30 PM"


def test_progress_advance(client, ids):
    body = {"profile_id": ids["profile"], "tracked_title_id": ids["show"], "household_id": ids["household"]}

    no_cursor = client.patch("/api/progress", json={**body, "total_episodes_in_season": 5, "total_seasons": 3})
    assert no_cursor.status_code == 404

    assert client.post("/api/progress", json={**body, "season_number": 1, "episode_number": 5}).status_code == 200
    advanced = client.patch("/api/progress", json={**body, "action": "advance", "total_episodes_in_season": 5, "total_seasons": 3})
    assert advanced.status_code == 200
    data = advanced.json()
    assert (data["progress"]["season_number"], data["progress"]["episode_number"]) == (2, 1)
    assert data["complete"] is False

    got = client.get(f"/api/progress/{ids['profile']}/{ids['show']}", params={"household_id": ids["household"]})
    assert got.json()["season_number"] == 2

    listing = client.get("/api/progress", params={"profile_id": ids["profile"], "household_id": ids["household"]}).json()
    assert listing[0]["tmdb_id"] == 1396


def test_progress_rejects_zero_episode(client, ids):
    resp = client.post("/api/progress", json={
        "profile_id": ids["profile"],
        "tracked_title_id": ids["show"],
        "season_number": 1,
        "episode_number": 0,
        "household_id": ids["household"],
    })
    assert resp.status_code == 400


def test_unstarted_progress_is_null(client, ids):
    resp = client.get(f"/api/progress/{ids['profile']}/{ids['show']}", params={"household_id": ids["household"]})
    assert resp.status_code == 200
    assert resp.json() is None


def test_library_remove_cascades(client, ids):
    _add(client, ids, "show", 0)
    check = client.get("/api/library/check", params={"tmdb_id": 1396, "household_id": ids["household"]}).json()
    assert check == {"in_library": True, "title_id": ids["show"]}

    assert client.delete(f"/api/library/{ids['show']}", params={"household_id": ids["household"]}).status_code == 200

    week = client.get("/api/schedule", params={"profile_id": ids["profile"], "household_id": ids["household"]}).json()
    assert all(day == [] for day in week["days"].values())


def test_library_add_is_idempotent(client, household):
    body = {"tmdb_id": 550, "media_type": "movie", "household_id": household.id}
    first = client.post("/api/library", json=body).json()
    second = client.post("/api/library", json=body).json()
    assert first["id"] == second["id"]
    assert len(client.get("/api/library", params={"household_id": household.id}).json()) == 1


def test_fresh_install_bootstraps_household_then_profile(client):
    before = client.post("/api/profiles", json={"name": "Alex"})
    assert before.status_code == 404

    created = client.post("/api/households", json={"owner_id": "auth-42", "name": "The Smiths"})
    assert created.status_code == 200
    household = created.json()
    assert (household["id"], household["name"], household["owner_id"]) == (1, "The Smiths", "auth-42")

    again = client.post("/api/households", json={"owner_id": "auth-42"})
    assert again.json()["id"] == household["id"]
    assert client.get(f"/api/households/{household['id']}").json()["name"] == "The Smiths"

    # Routes default to household 1, which now exists
    profile = client.post("/api/profiles", json={"name": "Alex"})
    assert profile.status_code == 201
    assert profile.json()["household_id"] == 1


def test_household_bootstrap_validation(client):
    assert client.post("/api/households", json={"owner_id": "   "}).json() == {"error": "Owner id is required", "code": "VALIDATION_ERROR"}
    assert client.post("/api/households", json={}).status_code == 400
    missing = client.get("/api/households/99")
    assert missing.status_code == 404
    assert missing.json() == {"error": "No household found", "code": "NOT_FOUND"}


def test_profiles_crud(client, household):
    created = client.post("/api/profiles", json={"name": " Robin ", "maturity_level": "teen", "household_id": household.id})
    assert created.status_code == 201
    profile_id = created.json()["id"]
    assert created.json()["name"] == "Robin"

    updated = client.patch(f"/api/profiles/{profile_id}", json={"avatar": "fox", "household_id": household.id})
    assert updated.json()["avatar"] == "fox"

    empty = client.patch(f"/api/profiles/{profile_id}", json={"household_id": household.id})
    assert empty.status_code == 400

    assert client.delete(f"/api/profiles/{profile_id}", params={"household_id": household.id}).status_code == 200
    assert client.get(f"/api/profiles/{profile_id}", params={"household_id": household.id}).status_code == 404


def test_synopsis_falls_back_when_llm_unavailable(client, monkeypatch):
    monkeypatch.setattr(app.state, "synopsis_generator", StubGenerator())
    resp = client.post("/api/synopsis", json={
        "series_id": 1396,
        "season_number": 1,
        "episode_number": 1,
        "show_name": "Breaking Bad",
        "episode_name": "Pilot",
        "overview": "A teacher turns to crime.",
    })
    assert resp.status_code == 200
    assert resp.json() == {"blurb": "A teacher turns to crime.", "source": "tmdb_truncate", "cached": False}


def test_tmdb_proxy_not_found(client, monkeypatch):
    monkeypatch.setattr(app.state, "tmdb", StubTMDB())
    resp = client.get("/api/tmdb/tv/1")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_justwatch_requires_numeric_params(client):
    resp = client.get("/api/justwatch/episode", params={"tmdb_id": "abc", "title": "X", "season": 1, "episode": 1})
    assert resp.status_code == 400


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_week_view_unknown_timezone_is_validation_error(client, ids):
    resp = client.get("/api/schedule/week-view", params={"profile_id": ids["profile"], "household_id": ids["household"], "tz": "Nowhere/City"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
