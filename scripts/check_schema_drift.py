from __future__ import annotations

import sys

from raffledraw.db.drift import schema_differences
from raffledraw.db.engine import make_engine


def _print_ops(operations, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in operations:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def main() -> int:
    engine = make_engine()
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            differences = schema_differences(connection)
    except Exception as exc:
        print(f"Raffle schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if not differences:
        print(f"Raffle schema drift check: OK (no differences) for {url_display}.")
        return 0
    print(f"Raffle schema drift check: FAILED for {url_display}. Differences detected:")
    _print_ops(differences)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
