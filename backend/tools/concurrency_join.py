"""
Fire concurrent joins at a running server and report the queue positions handed out.

Usage:
    python tools/concurrency_join.py --product <product-id> --workers 8
Every worker uses a distinct email, so all joins should succeed with
positions forming 0..N-1 (on an empty queue). The join endpoint is rate
limited per IP; raise JOIN_RATE_LIMIT_MAX on the server for large runs.
"""
import argparse
import concurrent.futures
import json
import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import requests

BASE = os.environ.get("SPACEVOX_BASE", "http://127.0.0.1:8000")


def join_task(i, product_id, pickup_time):
    payload = {
        "productId": product_id,
        "buyerName": f"Load Buyer {i}",
        "email": f"load-{uuid4().hex[:8]}@example.org",
        "pickupTime": pickup_time,
    }
    try:
        r = requests.post(f"{BASE}/api/buyer-interests", json=payload, timeout=20)
        return (i, r.status_code, r.text)
    except requests.RequestException as e:
        return (i, "ERR", str(e))


def run_join_concurrent(workers, product_id, minutes_ahead):
    pickup_time = (datetime.now(timezone.utc) + timedelta(minutes=minutes_ahead)).isoformat()
    print(f"Running join test: workers={workers}, product={product_id}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(join_task, i, product_id, pickup_time) for i in range(workers)]
        results = [f.result() for f in futures]
    for r in results:
        print(r[:2], r[2][:200])
    positions = sorted(json.loads(r[2])["position"] for r in results if r[1] == 201)
    print("Positions:", positions)
    dense = positions == list(range(positions[0], positions[0] + len(positions))) if positions else True
    print("Unique:", len(set(positions)) == len(positions), "Dense:", dense)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent queue join test.")
    parser.add_argument("--product", required=True)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--minutes-ahead", type=int, default=60)
    args = parser.parse_args()
    run_join_concurrent(args.workers, args.product, args.minutes_ahead)
