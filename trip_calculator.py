# Main script to price a road trip between two addresses.

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from api_adapters import PROVIDERS, create_adapter
from api_structures import TripRequest, TripResult
from trip_export import summary_text, write_export
from trip_pricing import TripPricingEngine

logger = logging.getLogger(__name__)

DEFAULT_PRICE = "0.30"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logger; verbose mode shows every API call."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Quiet noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trip Price Calculator: price a road trip from distance and a rate per km.")
    parser.add_argument('--price', help=f"Price per kilometre [Default: {DEFAULT_PRICE}].")
    parser.add_argument('--origin', help="Origin address, e.g. 'Madrid, Spain'.")
    parser.add_argument('--destination', help="Destination address, e.g. 'Barcelona, Spain'.")
    parser.add_argument('--round-trip', action='store_true',
                        help="Count the trip twice (outbound and return).")
    parser.add_argument('--provider', choices=sorted(PROVIDERS), default='osm',
                        help="Mapping API used for geocoding and routing [Default: osm].")
    parser.add_argument('--export-dir',
                        help="Also write the result as a spreadsheet into this directory.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    return parser


def read_request(args: argparse.Namespace) -> TripRequest:
    """Builds the request from the flags, prompting for anything not given."""
    price = args.price
    if price is None:
        price = input(f"Enter the price per km [Default: {DEFAULT_PRICE}]: ") or DEFAULT_PRICE
    origin = args.origin
    if origin is None:
        origin = input("Enter the origin address: ")
    destination = args.destination
    if destination is None:
        destination = input("Enter the destination address: ")
    return TripRequest(price_per_km=price, origin=origin, destination=destination,
                       round_trip=args.round_trip)


def display_result(result: TripResult) -> None:
    """Prints the result card."""
    if result.ok:
        print("\nTrip calculated.\n")
    else:
        print("\nThe trip could not be calculated.\n")
    print(summary_text(result))


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        adapter = create_adapter(args.provider)
    except ValueError as e:
        print(e)
        return 2

    request = read_request(args)
    print("Calculating route...")
    result = asyncio.run(TripPricingEngine(adapter).compute(request))
    display_result(result)

    if args.export_dir:
        path = write_export(result, args.export_dir)
        print(f"\nExported to {path}")

    return 0 if result.ok else 1


if __name__ == '__main__':
    sys.exit(main())
