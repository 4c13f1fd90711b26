#!/usr/bin/env python3
"""
SuperFarm command line

Usage:
    # Flow rate for 1 ETH at 2000 USD, 10% yield
    superfarm quote --value 1000000000000000000 --price 200000000000 --decimals 8

    # Scripted mint / transfer / burn on in-memory collaborators
    superfarm simulate

    # REST API over an in-memory farm
    superfarm serve --port 8080

    # Live reads (web3)
    superfarm price --network kovan
    superfarm flow --network kovan --receiver 0x...

Configuration:
    Preset networks plus SUPERFARM_* environment variables (see config.py).
    A .env file in the working directory is loaded first.
"""

import argparse
import json
import logging
import sys

from .config import NETWORKS, check_chain_id, load_config, load_env_file
from .errors import SuperFarmError
from .flow_rate import DEFAULT_YIELD_PERCENT, flow_rate, format_rate, minimum_deposit, yearly_amount
from .oracle import PriceOracleAdapter
from .simulation import DEFAULT_DECIMALS, DEFAULT_PRICE, build_simulation, run_scenario

log = logging.getLogger("superfarm")


# ============ COMMANDS ============

def cmd_quote(args):
    """Compute a flow rate offline."""
    rate = flow_rate(args.value, args.price, args.decimals, args.yield_percent)
    print(f"Deposit:     {args.value} wei")
    print(f"Price:       {args.price} ({args.decimals} decimals)")
    print(f"Yield:       {args.yield_percent}%")
    print(f"Flow rate:   {rate}/s")
    print(f"Per year:    {yearly_amount(rate)}")
    print(f"Readable:    {format_rate(rate)}")
    print(f"Min deposit: {minimum_deposit(args.price, args.decimals, args.yield_percent)} wei")


def cmd_networks(args):
    """List network presets."""
    print(json.dumps(NETWORKS, indent=2))


def cmd_simulate(args):
    """Run the scripted scenario on in-memory collaborators."""
    config = load_config(args.network)
    farm = build_simulation(config, args.price, args.decimals)
    for line in run_scenario(farm, args.deposit):
        print(line)
    print(json.dumps(farm.status(), indent=2))


def cmd_serve(args):
    """Serve the REST API over an in-memory farm."""
    from .server import create_app

    config = load_config(args.network)
    farm = build_simulation(config, args.price, args.decimals)
    app = create_app(farm)
    log.info(f"Serving {config.name} ({config.symbol}) on port {args.port}")
    app.run(host=args.host, port=args.port)


def cmd_price(args):
    """Read the live oracle price."""
    from .chain import ChainlinkPriceFeed, connect

    config = load_config(args.network)
    check_chain_id(config.chain_id)
    w3 = connect(config.rpc_url, config.chain_id)
    oracle = PriceOracleAdapter(ChainlinkPriceFeed(w3, config.oracle))
    price, decimals = oracle.latest_price()
    print(f"Price: {price} ({decimals} decimals) = {price / 10 ** decimals:.2f}")
    if args.value:
        rate = flow_rate(args.value, price, decimals, config.yield_percent)
        print(f"Flow rate for {args.value} wei: {rate}/s")


def cmd_flow(args):
    """Read the live stream from the contract to a receiver."""
    from .chain import CFAv1Reader, connect

    config = load_config(args.network)
    check_chain_id(config.chain_id)
    w3 = connect(config.rpc_url, config.chain_id)
    reader = CFAv1Reader(w3, config.host, config.cfa)
    sender = args.sender or config.custody
    rate = reader.get_outgoing_rate(config.asset, sender, args.receiver)
    print(f"Flow {sender} -> {args.receiver}: {rate}/s")
    print(f"Receiver is app: {reader.is_restricted_receiver(args.receiver)}")


# ============ MAIN ============

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SuperFarm flow token tools")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--env-file", default=".env", help="Settings file (default: .env)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # quote command
    quote_parser = subparsers.add_parser("quote", help="Compute a flow rate offline")
    quote_parser.add_argument("--value", type=int, required=True, help="Deposit in wei")
    quote_parser.add_argument("--price", type=int, default=DEFAULT_PRICE,
                              help=f"Oracle price (default: {DEFAULT_PRICE})")
    quote_parser.add_argument("--decimals", type=int, default=DEFAULT_DECIMALS,
                              help=f"Oracle decimals (default: {DEFAULT_DECIMALS})")
    quote_parser.add_argument("--yield", dest="yield_percent", type=int,
                              default=DEFAULT_YIELD_PERCENT,
                              help=f"Annual yield percent (default: {DEFAULT_YIELD_PERCENT})")

    # networks command
    subparsers.add_parser("networks", help="List network presets")

    # simulate command
    sim_parser = subparsers.add_parser("simulate", help="Run a scripted in-memory scenario")
    sim_parser.add_argument("--network", default="local", choices=list(NETWORKS.keys()))
    sim_parser.add_argument("--deposit", type=int, default=10 ** 18, help="Deposit in wei")
    sim_parser.add_argument("--price", type=int, default=DEFAULT_PRICE)
    sim_parser.add_argument("--decimals", type=int, default=DEFAULT_DECIMALS)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Serve the REST API (in-memory)")
    serve_parser.add_argument("--network", default="local", choices=list(NETWORKS.keys()))
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8080)
    serve_parser.add_argument("--price", type=int, default=DEFAULT_PRICE)
    serve_parser.add_argument("--decimals", type=int, default=DEFAULT_DECIMALS)

    # price command
    price_parser = subparsers.add_parser("price", help="Read the live oracle price")
    price_parser.add_argument("--network", default="kovan", choices=list(NETWORKS.keys()))
    price_parser.add_argument("--value", type=int, default=0, help="Also quote this deposit")

    # flow command
    flow_parser = subparsers.add_parser("flow", help="Read a live stream")
    flow_parser.add_argument("--network", default="kovan", choices=list(NETWORKS.keys()))
    flow_parser.add_argument("--receiver", required=True, help="Receiver address")
    flow_parser.add_argument("--sender", default="", help="Sender (default: custody)")

    return parser


COMMANDS = {
    "quote": cmd_quote,
    "networks": cmd_networks,
    "simulate": cmd_simulate,
    "serve": cmd_serve,
    "price": cmd_price,
    "flow": cmd_flow,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s [%(levelname)s] %(message)s')
    load_env_file(args.env_file)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        handler(args)
    except SuperFarmError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
