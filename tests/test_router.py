"""
Tests for the flow router state machine.

Tests cover:
- increase: create on empty, update otherwise
- decrease: delete on exact match, update above, silent no-op below
- custody / null destinations are skipped
- host failures propagate
"""

import logging
from unittest.mock import MagicMock

import pytest

from superfarm.errors import StreamHostError
from superfarm.flow_types import ZERO_ADDRESS, FlowOp
from superfarm.router import FlowRouter
from superfarm.stream_host import InMemoryStreamHost

from .conftest import ALICE, BOB

ASSET = "fDAIx"
FARM = "0xFa4A000000000000000000000000000000000009"


@pytest.fixture
def host():
    return InMemoryStreamHost()


@pytest.fixture
def router(host):
    return FlowRouter(host, ASSET, FARM)


# =============================================================
# TEST: increase
# =============================================================

class TestIncrease:

    def test_creates_when_no_stream(self, router, host):
        assert router.increase(ALICE, 100) == FlowOp.CREATE
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 100

    def test_merges_into_existing_stream(self, router, host):
        router.increase(ALICE, 100)
        assert router.increase(ALICE, 50) == FlowOp.UPDATE
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 150
        assert len(host.streams()) == 1

    def test_rereads_host_every_time(self, router, host):
        router.increase(ALICE, 100)
        # Someone else changed the stream; the router must not use a stale value
        host.update_stream(ASSET, FARM, ALICE, 400)
        router.increase(ALICE, 100)
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 500

    @pytest.mark.parametrize("to", [None, "", ZERO_ADDRESS, FARM, FARM.lower()])
    def test_skips_custody_and_null(self, router, host, to):
        assert router.increase(to, 100) == FlowOp.SKIP
        assert host.streams() == []


# =============================================================
# TEST: decrease
# =============================================================

class TestDecrease:

    def test_exact_match_deletes(self, router, host):
        router.increase(ALICE, 100)
        assert router.decrease(ALICE, 100) == FlowOp.DELETE
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 0
        assert host.streams() == []

    def test_partial_decrease_updates(self, router, host):
        router.increase(ALICE, 100)
        router.increase(ALICE, 40)
        assert router.decrease(ALICE, 40) == FlowOp.UPDATE
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 100

    def test_below_rate_is_silent_noop(self, router, host, caplog):
        router.increase(ALICE, 10)
        with caplog.at_level(logging.WARNING, logger="superfarm.router"):
            assert router.decrease(ALICE, 100) == FlowOp.NOOP
        assert host.get_outgoing_rate(ASSET, FARM, ALICE) == 10
        assert "ignored" in caplog.text

    def test_no_stream_is_noop(self, router, host):
        assert router.decrease(BOB, 100) == FlowOp.NOOP

    @pytest.mark.parametrize("to", [None, ZERO_ADDRESS, FARM])
    def test_skips_custody_and_null(self, router, to):
        assert router.decrease(to, 100) == FlowOp.SKIP

    def test_current_rate(self, router):
        router.increase(ALICE, 7)
        assert router.current_rate(ALICE) == 7
        assert router.current_rate(FARM) == 0


# =============================================================
# TEST: Host failures
# =============================================================

class TestHostFailures:

    def test_create_failure_propagates(self):
        host = MagicMock()
        host.get_outgoing_rate.return_value = 0
        host.create_stream.side_effect = StreamHostError("rejected")
        with pytest.raises(StreamHostError):
            FlowRouter(host, ASSET, FARM).increase(ALICE, 100)

    def test_delete_failure_propagates(self):
        host = MagicMock()
        host.get_outgoing_rate.return_value = 100
        host.delete_stream.side_effect = StreamHostError("rejected")
        with pytest.raises(StreamHostError):
            FlowRouter(host, ASSET, FARM).decrease(ALICE, 100)
        host.update_stream.assert_not_called()
