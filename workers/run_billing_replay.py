"""
Repair the subscription mirror after webhook handler failures.

    python -m workers.run_billing_replay --failed
    python -m workers.run_billing_replay --customer cus_123
    python -m workers.run_billing_replay --account <account id>
"""

import argparse
import asyncio
import json
import logging
import sys

from common.core.exceptions import NotFoundError, ProviderUnavailableError
from common.core.otel_axiom_exporter import get_logger
from common.db.session import dispose_db
from packages.billing.services.replay_service import ReplayService, summarize

logger = get_logger(__name__)


def setup_cli(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Stripe billing mirror replay")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--failed",
        action="store_true",
        help="Re-reconcile every webhook event whose handler failed",
    )
    target.add_argument(
        "--customer",
        type=str,
        help="Lazy-pull one Stripe customer (cus_...)",
    )
    target.add_argument(
        "--account",
        type=str,
        help="Lazy-pull the Stripe customer mapped to one account id",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum failed events to replay (default: 100)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    """Execute the requested replay; returns the process exit code."""
    service = ReplayService()
    try:
        if args.failed:
            result = await service.replay_failed(limit=args.limit)
            print(json.dumps(result.model_dump()))
            return 1 if result.still_failing else 0

        if args.customer:
            record = await service.replay_customer(args.customer)
        else:
            record = await service.replay_account(args.account)
        print(json.dumps(summarize([record])[0]))
        return 0
    except NotFoundError as e:
        logger.error(str(e))
        return 2
    except ProviderUnavailableError as e:
        logger.error(f"Stripe unavailable: {e}")
        return 3
    finally:
        await dispose_db()


def main(argv=None) -> int:
    """Main entry point with command-line argument support."""
    args = setup_cli(argv)
    logging.getLogger().setLevel(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
