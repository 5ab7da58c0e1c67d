import argparse

from ..capture.transport import DEFAULT_ENDPOINT, HttpTransport
from ..errors import TransportError
from ..logging_config import setup_logging
from .personas import PERSONAS, run_persona


class _Counting(HttpTransport):
    failed = 0

    def deliver(self, event):
        result = super().deliver(event)
        if isinstance(result, TransportError):
            self.failed += 1
        return result


def main():
    ap = argparse.ArgumentParser(description="Post synthetic form sessions to a FormFix server.")
    ap.add_argument("--url", default=DEFAULT_ENDPOINT)
    ap.add_argument("--rounds", type=int, default=3)
    args = ap.parse_args()
    setup_logging()

    transport = _Counting(args.url)
    total = 0
    for _ in range(args.rounds):
        for name in PERSONAS:
            total += len(run_persona(name, transport))
    print(f"Seeded {total} events across {len(PERSONAS)} personas x {args.rounds} ({transport.failed} failed).")


if __name__ == "__main__":
    main()
