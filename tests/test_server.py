"""Tests for the REST API, using Flask's test client."""

import pytest

from superfarm.server import create_app

from .conftest import ALICE, APP, BOB, ONE_ETH, RATE_1_ETH


@pytest.fixture
def client(farm):
    app = create_app(farm)
    app.config["TESTING"] = True
    return app.test_client()


def mint(client, caller=ALICE, value=ONE_ETH):
    return client.post("/api/mint", json={"caller": caller, "value": str(value)})


class TestMintEndpoint:

    def test_mint(self, client):
        resp = mint(client)
        assert resp.status_code == 201
        assert resp.get_json() == {"token_id": 0, "owner": ALICE, "flow_rate": RATE_1_ETH}

    def test_small_deposit_is_400(self, client):
        resp = mint(client, value=1)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_deposit"

    def test_restricted_receiver_is_400(self, client, farm):
        farm.host.register_app(APP)
        resp = mint(client, caller=APP)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "restricted_receiver"

    @pytest.mark.parametrize("value", [1.5, 1e18, True])
    def test_non_integer_value_is_400(self, client, farm, value):
        resp = client.post("/api/mint", json={"caller": ALICE, "value": value})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_request"
        assert farm.next_token_id == 0

    def test_missing_field_is_400(self, client):
        resp = client.post("/api/mint", json={"caller": ALICE})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_request"


class TestTransferAndBurn:

    def test_transfer(self, client, farm):
        mint(client)
        resp = client.post("/api/transfer", json={"caller": ALICE, "to": BOB, "token_id": 0})
        assert resp.status_code == 200
        assert farm.outgoing_rate(BOB) == RATE_1_ETH

    def test_transfer_by_non_owner_is_403(self, client):
        mint(client)
        resp = client.post("/api/transfer", json={"caller": BOB, "to": BOB, "token_id": 0})
        assert resp.status_code == 403

    def test_burn(self, client):
        mint(client)
        resp = client.post("/api/burn", json={"caller": ALICE, "token_id": 0})
        assert resp.status_code == 200
        assert resp.get_json()["refund"] == str(ONE_ETH)

    def test_burn_unknown_token_is_404(self, client):
        resp = client.post("/api/burn", json={"caller": ALICE, "token_id": 9})
        assert resp.status_code == 404


class TestQueries:

    def test_status_and_quote(self, client):
        assert client.get("/api/status").get_json()["symbol"] == "SFST"
        resp = client.get(f"/api/quote?value={ONE_ETH}")
        assert resp.get_json()["flow_rate"] == RATE_1_ETH

    def test_token_flows_events(self, client):
        mint(client)
        token = client.get("/api/tokens/0").get_json()
        assert token["owner"] == ALICE
        assert token["deposit"] == str(ONE_ETH)

        flows = client.get(f"/api/flows/{ALICE}").get_json()
        assert flows["flow_rate"] == RATE_1_ETH

        events = client.get("/api/events").get_json()
        assert [e["token_id"] for e in events] == [0]

    def test_streams(self, client, farm):
        assert client.get("/api/streams").get_json() == []
        mint(client)
        streams = client.get("/api/streams").get_json()
        assert len(streams) == 1
        assert streams[0]["receiver"] == ALICE
        assert streams[0]["sender"] == farm.custody
        assert streams[0]["flow_rate"] == RATE_1_ETH

    def test_unknown_token_is_404(self, client):
        assert client.get("/api/tokens/3").status_code == 404

    def test_invariant(self, client, farm):
        mint(client)
        assert client.get("/api/invariant").get_json() == {"ok": True, "mismatches": {}}
        farm.host.update_stream(farm.asset, farm.custody, ALICE, 1)
        body = client.get("/api/invariant").get_json()
        assert body["ok"] is False
        assert body["mismatches"][ALICE.lower()] == {"expected": RATE_1_ETH, "actual": 1}
