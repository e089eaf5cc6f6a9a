#!/usr/bin/env python3
"""
Print the IPA results for a test.

Computes the same importance and performance averages as
GET /v1/answers/results/{test_id}, straight from the database.

Usage:
    DATABASE_URL="postgresql://..." python scripts/ipa_report.py 42
    DATABASE_URL="postgresql://..." python scripts/ipa_report.py 42 --json
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.core import ipa_aggregation, response_store, test_store  # noqa: E402
from app.core.db_error_handling import (  # noqa: E402
    DatabaseOperationError,
    run_db_operation,
)
from app.core.exceptions import TestNotFoundError  # noqa: E402


async def build_report(db: AsyncSession, test_id: int) -> Dict[str, Any]:
    """
    Collect the averages for one test.

    Raises:
        TestNotFoundError: If the test does not exist
        DatabaseOperationError: If a query fails
    """
    test = await run_db_operation(db, "load test", test_store.get_test(db, test_id))
    if test is None:
        raise TestNotFoundError()

    result = await run_db_operation(
        db, "aggregate IPA results", ipa_aggregation.aggregate(db, test_id)
    )
    total = await run_db_operation(
        db,
        "count responses",
        response_store.count_responses_for_test(db, test_id),
    )

    return {
        "test_id": test_id,
        "name": test.name,
        "avg_importance": result.avg_importance,
        "avg_performance": result.avg_performance,
        "total_responses": total,
    }


def format_report(report: Dict[str, Any]) -> str:
    def fmt(value: Optional[float]) -> str:
        return "n/a" if value is None else f"{value:.2f}"

    return "\n".join(
        [
            f"Test {report['test_id']}: {report['name']}",
            f"  Responses:        {report['total_responses']}",
            f"  Avg importance:   {fmt(report['avg_importance'])}",
            f"  Avg performance:  {fmt(report['avg_performance'])}",
        ]
    )


async def _run(test_id: int, as_json: bool) -> int:
    from app.models.base import AsyncSessionLocal, async_engine

    try:
        async with AsyncSessionLocal() as db:
            report = await build_report(db, test_id)
    except TestNotFoundError as e:
        print(f"ERROR: {e.message} (ID: {test_id})", file=sys.stderr)
        return 1
    except DatabaseOperationError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 2
    finally:
        await async_engine.dispose()

    print(json.dumps(report) if as_json else format_report(report))
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the IPA importance/performance averages for a test"
    )
    parser.add_argument("test_id", type=int, help="ID of the test to report on")
    parser.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    return asyncio.run(_run(args.test_id, args.json))


if __name__ == "__main__":
    sys.exit(main())
