from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

import httpx

from ticket_service.schema import validate_response


def issue_one(client: httpx.Client, base_url: str, queue_id: str) -> Dict[str, Any]:
    r = client.get(f"{base_url}/api/v1/tickets/{queue_id}")
    r.raise_for_status()
    payload = r.json()
    validate_response("ticket", payload)
    return payload


def run_burst(base_url: str, queue_id: str, count: int, workers: int, timeout_s: float) -> Dict[str, Any]:
    base_url = base_url.rstrip("/")
    with httpx.Client(timeout=timeout_s) as client:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results: List[Dict[str, Any]] = list(
                pool.map(lambda _i: issue_one(client, base_url, queue_id), range(count))
            )

    numbers = Counter(r["ticketNumber"] for r in results)
    duplicates = sorted(n for n, seen in numbers.items() if seen > 1)
    return {
        "queue_id": queue_id,
        "requested": count,
        "distinct": len(numbers),
        "duplicates": duplicates,
    }


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue tickets concurrently and check for duplicates.")
    ap.add_argument("--base-url", default="http://localhost:8000")
    ap.add_argument("--queue", default="burst")
    ap.add_argument("--count", type=int, default=200)
    ap.add_argument("--workers", type=int, default=16)
    ap.add_argument("--timeout", type=float, default=5.0)
    args = ap.parse_args()
    if args.count > 10000:
        ap.error("--count above 10000 wraps the counter and always repeats numbers")

    report = run_burst(args.base_url, args.queue, args.count, args.workers, args.timeout)
    print(json.dumps(report, indent=2))
    if report["duplicates"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
