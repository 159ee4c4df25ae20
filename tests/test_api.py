# http surface, served in-process through FastAPI's TestClient

import pytest
from fastapi.testclient import TestClient

from tempavg.api import create_app
from tempavg.config import Settings
from tempavg.service import TemperatureService

ENDPOINT = "/city/temperature/annual/average"


@pytest.fixture
def service(source):
    return TemperatureService(Settings(source_file=source))


@pytest.fixture
def client(service):
    # entering the context runs the lifespan: first load on startup, clear on shutdown
    with TestClient(create_app(service, watch=False)) as c:
        yield c


def test_known_city(client):
    resp = client.get(ENDPOINT, params={"city": "Gdansk"})
    assert resp.status_code == 200
    assert resp.json() == {
        "city": "Gdansk",
        "data": [
            {"year": "2019", "averageTemperature": 15.0},
            {"year": "2018", "averageTemperature": 9.5},
            {"year": "2020", "averageTemperature": 1.01},
        ],
    }


def test_unknown_city_is_404(client):
    resp = client.get(ENDPOINT, params={"city": "Londyn"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Data for city Londyn was not found"


@pytest.mark.parametrize("params", [{"city": ""}, {"city": "   "}, {}])
def test_blank_city_is_400(client, params):
    resp = client.get(ENDPOINT, params=params)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "City cannot be null or empty"


def test_cities_lists_cache_keys(client):
    assert client.get("/cities").json() == ["Gdansk", "Warszawa", "Krakow"]


def test_explicit_reload(client, source):
    source.write_text("Lodz;2019-01-01;8.0\n", encoding="utf-8")
    body = client.post("/reload").json()
    assert body["status"] == "ok"
    assert body["cities"] == 1
    assert client.get("/cities").json() == ["Lodz"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_shutdown_clears_store(service):
    with TestClient(create_app(service, watch=False)) as c:
        assert c.get("/cities").json()
    assert service.cities() == []
