#!/usr/bin/env python3
"""Command-line interface for the metro route planner."""

import logging
import sys

from .config import LOG_LEVEL
from .models import RoutingError
from .planner import get_planner


def print_banner():
    """Print the welcome banner."""
    print("""
Metro Planner

  Enter a trip as "FROM to TO", for example:
    - PIMS to Faizabad
    - Secretariat to Khanna Pul

  Commands:
    /stations  - List all stations
    /quit      - Exit the program
""")


def plan_trip(origin_query: str, destination_query: str) -> int:
    """Print ranked routes for a trip; returns a process exit status."""
    planner = get_planner()
    origin = planner.resolve_station(origin_query)
    destination = planner.resolve_station(destination_query)
    if origin is None:
        print(f"Station not found: {origin_query}")
        return 1
    if destination is None:
        print(f"Station not found: {destination_query}")
        return 1

    result = planner.plan_routes(origin.id, destination.id)
    if isinstance(result, RoutingError):
        print(f"[{result.code.value}] {result.message}")
        return 1
    if not result:
        print(f"No route found from {origin.name} to {destination.name}")
        return 1

    print(f"\n{origin.name} -> {destination.name}: {len(result)} option(s)")
    for i, route in enumerate(result, start=1):
        print(f"\nOption {i}")
        print(route.describe())
    return 0


def list_stations():
    graph = get_planner().graph
    for line in graph.lines.values():
        names = ", ".join(graph.stations[sid].name for sid in line.station_ids)
        print(f"\n{line.name}: {names}")


def split_trip(text: str) -> tuple[str, str]:
    """Split "A to B" (or "A -> B") into its two station queries."""
    for separator in (" -> ", " to "):
        head, sep, tail = text.lower().partition(separator)
        if sep:
            return text[:len(head)].strip(), text[len(head) + len(sep):].strip()
    raise ValueError(f"Could not read a trip from {text!r}, use 'FROM to TO'")


def interactive():
    """Run the interactive prompt loop."""
    print_banner()

    while True:
        try:
            user_input = input("\nTrip: ").strip()

            if not user_input:
                continue

            if user_input.lower() in ["/quit", "/exit", "/q"]:
                print("\nGoodbye!")
                break

            if user_input.lower() == "/stations":
                list_stations()
                continue

            origin, destination = split_trip(user_input)
            plan_trip(origin, destination)

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except ValueError as e:
            print(f"\n[Error: {e}]")


def main(argv=None):
    """Entry point: plan one trip from arguments or start the prompt loop."""
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    args = sys.argv[1:] if argv is None else argv

    if not args:
        interactive()
        return 0
    if len(args) != 2:
        print("Usage: metro-planner FROM TO")
        return 2
    return plan_trip(args[0], args[1])


if __name__ == "__main__":
    sys.exit(main())
