#!/usr/bin/env python3
"""
Master script to generate all synthetic data.
"""

import argparse
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from vibecheck.data.repositories import CHECK_IN_COLUMNS, VENUE_COLUMNS
from vibecheck.synthetic.generator_config import get_default_config
from vibecheck.synthetic.generate_venues import generate_all_venues
from vibecheck.synthetic.generate_users import generate_all_users
from vibecheck.synthetic.generate_checkins import generate_all_checkins


def save_to_parquet(data_list, output_path: Path, columns=None):
    """Save list of dataclass objects to Parquet."""
    df = pd.DataFrame([asdict(item) for item in data_list], columns=columns)
    df.to_parquet(output_path, index=False)
    print(f"  Saved to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic venues and check-ins")
    parser.add_argument(
        "--output_dir",
        type=str,
        default="data",
        help="Output directory for generated data"
    )
    parser.add_argument(
        "--n_users",
        type=int,
        default=2_000,
        help="Number of users to generate"
    )
    parser.add_argument(
        "--n_venues",
        type=int,
        default=300,
        help="Number of venues to generate"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=90,
        help="Days of check-in history, ending now"
    )
    args = parser.parse_args()

    # Create output directory
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 80)
    print("SYNTHETIC DATA GENERATION")
    print("=" * 80)

    # Load configuration
    config = get_default_config()
    config.N_USERS = args.n_users
    config.N_VENUES = args.n_venues
    config.HISTORY_DAYS = args.days

    now = datetime.now(timezone.utc)

    print(f"\nConfiguration:")
    print(f"  Users: {config.N_USERS}")
    print(f"  Venues: {config.N_VENUES}")
    print(f"  Days: {config.HISTORY_DAYS}")
    print(f"  Cities: {', '.join(config.CITY_CENTERS)}")
    print(f"  Random seed: {config.RANDOM_SEED}")
    print()

    # Step 1: Generate venues
    print("Step 1/3: Generating venues...")
    venues = generate_all_venues(config)
    save_to_parquet(venues, output_dir / "venues.parquet", VENUE_COLUMNS)
    print()

    # Step 2: Generate users (check-in authors, not exported)
    print("Step 2/3: Generating users...")
    users = generate_all_users(config, now.year)
    print()

    # Step 3: Generate check-ins
    print("Step 3/3: Generating check-ins...")
    checkins = generate_all_checkins(users, venues, config, now)
    save_to_parquet(checkins, output_dir / "check_ins.parquet", CHECK_IN_COLUMNS)
    print()

    # Summary
    print("=" * 80)
    print("GENERATION COMPLETE")
    print("=" * 80)
    print(f"\nGenerated data:")
    print(f"  Venues: {len(venues)}")
    print(f"  Users: {len(users)}")
    print(f"  Check-ins: {len(checkins)}")
    print(f"\nFiles saved to: {output_dir.absolute()}")
    print("\nNext steps:")
    print(f"  VIBECHECK_DATA_DIR={output_dir} python -m vibecheck.serving.api_main")
    print()


if __name__ == "__main__":
    main()
