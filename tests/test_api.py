from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import lumactl.api.routes as routes
from lumactl.domain.models import Sample
from lumactl.drivers.backlight_sim import SimulatedBacklight
from lumactl.sensors.luminance import SimulatedLuminance
from lumactl.sensors.simulated_lux_sensor import SimulatedLuxSensor
from lumactl.services.sensing import SensingLoop


@pytest.fixture
def sim():
    return {
        "sensor": SimulatedLuxSensor(),
        "backlight": SimulatedBacklight(max_brightness=255, value=100),
        "luminance": SimulatedLuminance(30),
    }


@pytest.fixture
def client(controller, sim):
    sensing = SensingLoop(controller, output="eDP-1")

    app = FastAPI()
    app.dependency_overrides[routes.get_sensing] = lambda: sensing
    app.dependency_overrides[routes.get_controller] = lambda: controller
    app.dependency_overrides[routes.get_sim_sensor] = lambda: sim["sensor"]
    app.dependency_overrides[routes.get_sim_backlight] = lambda: sim["backlight"]
    app.dependency_overrides[routes.get_sim_luminance] = lambda: sim["luminance"]
    app.include_router(routes.router, prefix="/api")
    return TestClient(app)


def test_live_reports_controller_state(client, controller) -> None:
    controller.state.pending = Sample(120, 40, 77)
    controller.state.cooldown = 9

    body = client.get("/api/live").json()

    assert body["output"] == "eDP-1"
    assert body["running"] is False
    assert body["controller"]["phase"] == "pending"
    assert body["controller"]["cooldown"] == 9
    assert body["controller"]["pending"] == {"lux": 120, "luminance": 40, "brightness": 77}
    assert body["controller"]["samples"] == 0


def test_samples_lists_learned_data(client, controller) -> None:
    controller._samples = [Sample(5, None, 15), Sample(10, 20, 30)]

    body = client.get("/api/samples").json()

    assert body["samples"] == [
        {"lux": 5, "luminance": None, "brightness": 15},
        {"lux": 10, "luminance": 20, "brightness": 30},
    ]


def test_predict(client, controller) -> None:
    controller._samples = [Sample(5, 10, 15), Sample(10, 20, 30), Sample(100, 100, 100)]

    assert client.get("/api/predict", params={"lux": 50, "luminance": 50}).json()["brightness"] == 44
    assert client.get("/api/predict", params={"lux": 10, "luminance": 20}).json()["brightness"] == 30


def test_predict_rejects_out_of_range_luminance(client) -> None:
    assert client.get("/api/predict", params={"lux": 50, "luminance": 101}).status_code == 422


def test_sim_manual_lux(client, sim) -> None:
    resp = client.post("/api/sim/lux/manual", json={"lux": 750})

    assert resp.status_code == 200
    assert sim["sensor"].get() == 750
    assert client.get("/api/sim/status").json()["mode"] == "manual"


def test_sim_pattern(client, sim) -> None:
    resp = client.post("/api/sim/lux/pattern", json={"type": "random", "baseline": 400, "amplitude": 10, "noise": 0})

    assert resp.status_code == 200
    assert 390 <= sim["sensor"].get() <= 410


def test_sim_disable_enable(client) -> None:
    assert client.post("/api/sim/disable").json() == {"ok": True, "enabled": False}
    assert client.get("/api/sim/status").json()["enabled"] is False
    assert client.post("/api/sim/enable").json() == {"ok": True, "enabled": True}


def test_sim_brightness_simulates_user_edit(client, sim) -> None:
    resp = client.post("/api/sim/brightness", json={"brightness": 400})

    assert resp.json() == {"ok": True, "brightness": 255}


def test_sim_luminance(client, sim) -> None:
    client.post("/api/sim/luminance", json={"luminance": 80})
    assert sim["luminance"].get() == 80

    client.post("/api/sim/luminance", json={"luminance": None})
    assert sim["luminance"].get() is None
