"""
SuperFarm REST API

Endpoints:
  GET  /api/status            - Controller status
  GET  /api/quote?value=      - Flow rate for a deposit at the current price
  POST /api/mint              - {"caller", "value"} -> token id
  POST /api/transfer          - {"caller", "to", "token_id"}
  POST /api/burn              - {"caller", "token_id"} -> refund
  GET  /api/tokens/<id>       - Token record and owner
  GET  /api/flows/<address>   - Outgoing stream rate to an address
  GET  /api/streams          - Live streams from the contract (listing hosts)
  GET  /api/events            - Issuance events
  GET  /api/invariant         - Host vs ledger mismatches
"""

import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from .controller import SuperFarm
from .errors import (
    InvalidDepositError,
    InvalidReceiverError,
    LedgerInvariantError,
    NotTokenOwnerError,
    OracleError,
    RegistryError,
    StreamHostError,
    SuperFarmError,
)

log = logging.getLogger(__name__)

HTTP_PORT = 8080

# Most specific first
ERROR_STATUS = [
    (InvalidDepositError, 400),
    (InvalidReceiverError, 400),
    (NotTokenOwnerError, 403),
    (RegistryError, 404),
    (OracleError, 502),
    (StreamHostError, 502),
    (LedgerInvariantError, 500),
]


def status_for(error: SuperFarmError) -> int:
    for cls, code in ERROR_STATUS:
        if isinstance(error, cls):
            return code
    return 500


def _int_field(data: dict, name: str) -> int:
    """Read an integer field; large wei amounts may arrive as strings."""
    if name not in data:
        raise ValueError(f"Missing field: {name}")
    value = data[name]
    # Floats would silently drop fractional wei
    if isinstance(value, (bool, float)):
        raise ValueError(f"{name} must be an integer")
    return int(value)


def _str_field(data: dict, name: str) -> str:
    value = data.get(name)
    if not value or not isinstance(value, str):
        raise ValueError(f"Missing field: {name}")
    return value


def create_app(farm: SuperFarm) -> Flask:
    """Build the Flask app serving one controller."""
    app = Flask(__name__)
    CORS(app)  # Allow cross-origin for the dashboard

    @app.errorhandler(SuperFarmError)
    def handle_farm_error(e: SuperFarmError):
        code = status_for(e)
        log.warning(f"{request.method} {request.path} -> {code}: {e.message}")
        return jsonify(e.to_dict()), code

    @app.errorhandler(ValueError)
    def handle_bad_request(e: ValueError):
        return jsonify({"error": "bad_request", "message": str(e)}), 400

    @app.route("/api/status")
    def api_status():
        return jsonify(farm.status())

    @app.route("/api/quote")
    def api_quote():
        value = _int_field(request.args, "value")
        rate = farm.quote(value)
        return jsonify({"value": str(value), "flow_rate": rate})

    @app.route("/api/mint", methods=["POST"])
    def api_mint():
        data = request.get_json(silent=True) or {}
        caller = _str_field(data, "caller")
        value = _int_field(data, "value")
        token_id = farm.mint(caller, value)
        return jsonify({
            "token_id": token_id,
            "owner": caller,
            "flow_rate": farm.flow_rate_of(token_id),
        }), 201

    @app.route("/api/transfer", methods=["POST"])
    def api_transfer():
        data = request.get_json(silent=True) or {}
        caller = _str_field(data, "caller")
        to = _str_field(data, "to")
        token_id = _int_field(data, "token_id")
        farm.transfer(caller, to, token_id)
        return jsonify({"token_id": token_id, "owner": to})

    @app.route("/api/burn", methods=["POST"])
    def api_burn():
        data = request.get_json(silent=True) or {}
        caller = _str_field(data, "caller")
        token_id = _int_field(data, "token_id")
        refund = farm.burn(caller, token_id)
        return jsonify({"token_id": token_id, "refund": str(refund)})

    @app.route("/api/tokens/<int:token_id>")
    def api_token(token_id: int):
        record = farm.ledger.find(token_id)
        if record is None:
            return jsonify({"error": "not_found",
                            "message": f"Token {token_id} is not live"}), 404
        data = record.to_dict()
        data["deposit"] = str(record.deposit)
        data["owner"] = farm.registry.owner_of(token_id)
        return jsonify(data)

    @app.route("/api/flows/<address>")
    def api_flows(address: str):
        return jsonify({
            "receiver": address,
            "flow_rate": farm.outgoing_rate(address),
        })

    @app.route("/api/streams")
    def api_streams():
        if not hasattr(farm.host, "streams"):
            return jsonify({"error": "not_supported",
                            "message": "Stream host cannot list streams"}), 501
        streams = farm.host.streams(farm.asset, farm.custody)
        return jsonify([stream.to_dict() for stream in streams])

    @app.route("/api/events")
    def api_events():
        return jsonify([event.to_dict() for event in farm.events])

    @app.route("/api/invariant")
    def api_invariant():
        mismatches = farm.check_invariant()
        return jsonify({
            "ok": not mismatches,
            "mismatches": {addr: {"expected": want, "actual": have}
                           for addr, (want, have) in mismatches.items()},
        })

    return app
