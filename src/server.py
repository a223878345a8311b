"""Protean Engine runner for the orders domain.

Starts the Engine that processes events asynchronously when the domain is
configured with ``event_processing = "async"`` (the production overlay),
so order notifications are dispatched outside the request.

Usage:
    PROTEAN_ENV=production python src/server.py
    PROTEAN_ENV=production python src/server.py --test-mode   # drain and exit
"""

import argparse

from protean.server.engine import Engine


def main():
    parser = argparse.ArgumentParser(description="Orders Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    from orders.domain import orders

    orders.init()
    engine = Engine(orders, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
