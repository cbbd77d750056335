#!/usr/bin/env python3

"""
Command-line tool for repeating an event as an administrator.

Copies an event and its task templates a number of times at a fixed
interval, the same way the API's repeat endpoint does, and prints the
outcome of every iteration. Useful for seeding a term's worth of weekly
meetings or re-running a repeat that stopped half way.

Common use cases:
    # Four weekly copies of event 12
    python repeat_event.py 12 --unit week --count 4

    # Monthly copies, safe to re-run after a failure
    python repeat_event.py 12 --unit month --count 6 --key spring-term

Exit status is 0 when every copy was created or reused, 1 when some
iterations did not complete and 2 when the request was rejected.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from community_hub.db import db
from community_hub.errors import EngineError
from community_hub.models import Actor, Role
from community_hub.services import IntervalUnit, RecurrenceGenerator
from community_hub.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

def print_result(result) -> None:
    """Print one line per iteration followed by a summary."""
    print(f"\nRepeat of event {result.source_event_id}:")
    for outcome in result.outcomes:
        line = f"  #{outcome.index:<3} {outcome.scheduled_start:%Y-%m-%d %H:%M}  {outcome.status.value:<9}"
        if outcome.event_id:
            line += f" event {outcome.event_id}"
            if outcome.task_ids:
                line += f" tasks {', '.join(str(task_id) for task_id in outcome.task_ids)}"
        if outcome.error:
            line += f" ({outcome.error})"
        print(line)
    print(
        f"\n{len(result.succeeded)} of {len(result.outcomes)} copies available, "
        f"{result.failure_count} failed"
    )

def main():
    """Main entry point for the script"""
    parser = argparse.ArgumentParser(
        description='Repeat a community event at a fixed interval',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('event_id', type=int, help='Event to copy')
    parser.add_argument('--unit', choices=[unit.value for unit in IntervalUnit], default='week',
                        help='Interval unit (default: week)')
    parser.add_argument('--every', type=int, default=1,
                        help='Number of units between copies (default: 1)')
    parser.add_argument('--count', type=int, required=True,
                        help='Number of copies to create')
    parser.add_argument('--key',
                        help='Idempotency key; re-running with the same key reuses completed copies')
    parser.add_argument('--admin-id', type=int, default=1,
                        help='User id recorded as organizer of the copies (default: 1)')
    parser.add_argument('--debug', action='store_true', help='Show debug logging')
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    db.ensure_tables_exist()

    actor = Actor(actor_id=args.admin_id, role=Role.ADMIN)
    generator = RecurrenceGenerator(db)
    try:
        result = generator.generate(
            actor,
            args.event_id,
            interval_unit=args.unit,
            interval_value=args.every,
            repeat_count=args.count,
            idempotency_key=args.key,
        )
    except EngineError as e:
        logger.error(f"Repeat rejected: {e}")
        sys.exit(2)

    print_result(result)
    sys.exit(0 if result.ok else 1)

if __name__ == "__main__":
    main()
