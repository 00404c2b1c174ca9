"""
read_load.py - async redirect benchmark for short links

Usage:
  python read_load.py --base http://127.0.0.1:8000 --in urls_created.jsonl --count 15000 --concurrency 200

Input lines are {"code": ..., "url": ...} as written by write_load.py or
seed_urls.py. Redirects are not followed. A hit counts as ok only when the
answer is 302 and its Location matches the stored URL (when the input line
carries one). Prints a status breakdown and latency percentiles.
"""
import argparse
import asyncio
import json
import random
import statistics
import time
from collections import Counter
from datetime import datetime, timezone

import httpx

def _now_iso():
    return datetime.now(timezone.utc).isoformat()

def _load_targets(path):
    """Return (code, expected_url or None) pairs; malformed lines are skipped."""
    targets = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if obj.get("code"):
                targets.append((obj["code"], obj.get("url")))
    return targets

async def _follow(client: httpx.AsyncClient, base: str, code: str, expected):
    """One redirect lookup -> (outcome, latency_ms)."""
    t0 = time.perf_counter()
    try:
        r = await client.get(f"{base}/{code}", follow_redirects=False, timeout=10)
    except httpx.HTTPError as e:
        return type(e).__name__, (time.perf_counter() - t0) * 1000
    ms = (time.perf_counter() - t0) * 1000
    if r.status_code != 302:
        return str(r.status_code), ms
    if expected and r.headers.get("location") != expected:
        return "302-wrong-target", ms
    return "ok", ms

def _percentile(sorted_ms, pct):
    if not sorted_ms:
        return 0.0
    idx = max(0, min(len(sorted_ms) - 1, int(len(sorted_ms) * pct) - 1))
    return sorted_ms[idx]

async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="codes_file", default="urls_created.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--user-agent", default="shortener-read-load/1.0",
                        help="sent with every hit; the server logs it with the click")
    parser.add_argument("--referer", default=None)
    args = parser.parse_args()

    targets = _load_targets(args.codes_file)
    if not targets:
        print(f"No codes found in {args.codes_file}. Run write_load.py or seed_urls.py first.")
        return

    headers = {"User-Agent": args.user_agent}
    if args.referer:
        headers["Referer"] = args.referer

    outcomes = Counter()
    latencies = []
    start_iso = _now_iso()
    t0 = time.perf_counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit, headers=headers) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _task():
            code, expected = random.choice(targets)
            async with sem:
                outcome, ms = await _follow(client, args.base, code, expected)
            outcomes[outcome] += 1
            latencies.append(ms)

        await asyncio.gather(*(_task() for _ in range(args.count)))

    dt = time.perf_counter() - t0
    latencies.sort()
    ok = outcomes["ok"]
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   reads={args.count}, ok={ok}, fail={args.count - ok}")
    for outcome, n in sorted(outcomes.items()):
        if outcome != "ok":
            print(f"  {outcome}: {n}")
    if latencies:
        print(f"LAT:   p50={statistics.median(latencies):.2f}ms "
              f"p95={_percentile(latencies, 0.95):.2f}ms p99={_percentile(latencies, 0.99):.2f}ms")
    if dt > 0:
        print(f"RPS:   {ok/dt:.1f} req/s")

if __name__ == "__main__":
    asyncio.run(main())
