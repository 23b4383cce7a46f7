from __future__ import annotations

import argparse
import logging
import sys

from raffledraw.db.engine import get_sessionmaker, make_engine
from raffledraw.draw import DrawSequencer, RaffleDrawError, WinnerSelector
from raffledraw.models import Raffle
from raffledraw.workflows import format_raffle_results


def main(argv: list[str] | None = None) -> int:
    """Run (or reset) a raffle ceremony against the configured database."""
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("raffle_id", type=int)
    parser.add_argument("--reset", action="store_true", help="clear winners first")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    Session = get_sessionmaker(make_engine())
    sequencer = DrawSequencer(Session, selector=WinnerSelector.from_env())

    try:
        if args.reset:
            sequencer.reset(args.raffle_id)
        with sequencer.start(args.raffle_id) as draw:
            for event in draw:
                print(
                    f"{event.prize_order}º {event.prize_name}: "
                    f"{event.winner_snapshot['name']} (lead {event.winner_id})"
                )
    except RaffleDrawError as exc:
        where = "" if exc.prize_index is None else f" at prize index {exc.prize_index}"
        print(f"Draw failed{where}: {exc}", file=sys.stderr)
        return 1

    with Session() as session:
        raffle = session.get(Raffle, args.raffle_id)
        if raffle is not None and raffle.social_sharing_enabled:
            print()
            print(format_raffle_results(session, raffle))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
