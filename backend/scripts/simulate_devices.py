#!/usr/bin/env python3
"""Drive a running geozone server with simulated device movement.

Each round moves every device to a random point near a random active zone
(roughly +/-100 m) and reports it to POST /api/locations.
"""

import argparse
import random
import sys
import time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from geozone.services.sample_data import SAMPLE_USER, SAMPLE_ZONES

DEFAULT_DEVICES = ["device-1", "device-2", "device-3"]

# ~200 m spread in degrees around a zone center
POSITION_JITTER = 0.002


def seed_zones(client: httpx.Client) -> None:
    """Create the sample zones as the demo user."""
    for zone_input in SAMPLE_ZONES:
        response = client.post(
            "/api/zones",
            json=zone_input.model_dump(by_alias=True, exclude_none=True),
            headers={"X-User-Id": SAMPLE_USER},
        )
        if response.status_code == 201:
            print(f"  Created zone: {zone_input.name} ({response.json()['id']})")
        else:
            print(f"  Skipped zone {zone_input.name}: {response.json().get('detail')}")


def simulate_round(client: httpx.Client, devices: list[str], rng: random.Random) -> int:
    """Send one position per device; returns the number of events produced."""
    zones = client.get("/api/zones", params={"status": "active"}).json()
    if not zones:
        return 0

    produced = 0
    for device_id in devices:
        zone = rng.choice(zones)
        payload = {
            "deviceId": device_id,
            "latitude": zone["latitude"] + (rng.random() - 0.5) * POSITION_JITTER,
            "longitude": zone["longitude"] + (rng.random() - 0.5) * POSITION_JITTER,
            "accuracy": 10,
        }
        response = client.post("/api/locations", json=payload)
        response.raise_for_status()

        for event in response.json()["events"]:
            produced += 1
            print(f"  {device_id}: {event['type']} {event['zoneId']}")

    return produced


def main():
    parser = argparse.ArgumentParser(description="Simulate device movement against a geozone server")
    parser.add_argument("--url", default="http://localhost:8000", help="Server base URL")
    parser.add_argument("--rounds", type=int, default=10, help="Number of movement rounds")
    parser.add_argument("--interval", type=float, default=5.0, help="Seconds between rounds")
    parser.add_argument("--seed-zones", action="store_true", help="Create sample zones first")
    parser.add_argument("--random-seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument("devices", nargs="*", default=DEFAULT_DEVICES, help="Device ids to move")
    args = parser.parse_args()

    rng = random.Random(args.random_seed)

    with httpx.Client(base_url=args.url, timeout=10.0) as client:
        if args.seed_zones:
            print("Seeding sample zones...")
            seed_zones(client)

        for round_number in range(1, args.rounds + 1):
            print(f"Round {round_number}/{args.rounds}")
            produced = simulate_round(client, args.devices, rng)
            if not produced:
                print("  (no transitions)")
            if round_number < args.rounds:
                time.sleep(args.interval)

    print("Done.")


if __name__ == "__main__":
    main()
