"""
Generate current-period instances for all active patterns.

Meant to be run by an external scheduler (cron), e.g. every Monday 00:05:
    python run_batch_generation.py
    python run_batch_generation.py weekly n_per_period
"""
import logging
import sys

from app.application.occurrence_generator import OccurrenceGenerator
from app.domain.recurrence import PERIOD_FREQ
from app.infrastructure.db.repository import SqlRecurrenceStore
from app.infrastructure.db.session import session_scope

logging.basicConfig(level=logging.INFO)


def main(frequencies: list[str]) -> int:
    unknown = [f for f in frequencies if f not in PERIOD_FREQ]
    if unknown:
        print(f"✗ Unsupported frequencies: {', '.join(unknown)}")
        return 2

    failed = 0
    with session_scope() as db:
        generator = OccurrenceGenerator(SqlRecurrenceStore(db))
        for frequency in frequencies:
            result = generator.generate_for_frequency_batch(frequency)
            print(
                f"✓ {frequency} {result.period_key}: created={len(result.created)} "
                f"satisfied={len(result.satisfied)} failed={len(result.failed)}"
            )
            for pattern_id, error in result.failed.items():
                print(f"  - {pattern_id}: {error}")
            failed += len(result.failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:] or sorted(PERIOD_FREQ)))
