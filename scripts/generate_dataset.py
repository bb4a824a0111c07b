"""
Dashboard Dataset Generator
Writes the six raw JSON collections the dashboard loads.
"""

import sys
from pathlib import Path

from dashboard_engine.config import get_settings
from dashboard_engine.config.logging import configure_logging
from dashboard_engine.data import RawDataGenerator, save_raw_dataset


def main(n_sessions: int = 5000, seed: int = 42) -> None:
    configure_logging()
    output_dir = Path(get_settings().engine.data_dir)

    print("=" * 60)
    print("🛒 Dashboard Dataset Generator")
    print("=" * 60 + "\n")

    dataset = RawDataGenerator(seed=seed).generate(n_sessions=n_sessions)
    written = save_raw_dataset(dataset, output_dir)

    total = 0
    for name, path in written.items():
        rows = dataset.row_counts()[name]
        size = path.stat().st_size / 1024 / 1024
        total += rows
        print(f"   📄 {path.name}: {rows:,} rows ({size:.2f} MB)")

    print(f"\n📁 Output: {output_dir}")
    print(f"📊 Total: {total:,} rows")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 5000)
