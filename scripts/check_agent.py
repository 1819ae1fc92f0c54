import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import httpx

REPO_ROOT = Path(__file__).resolve().parents[1]

logger = logging.getLogger("check_agent")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post fixture alerts to the analyze endpoint and check decisions.")
    parser.add_argument(
        "--fixtures",
        default=str(REPO_ROOT / "data" / "fixtures" / "transactions.json"),
        help="Path to a JSON list of {name, data, expected_decision} records.",
    )
    parser.add_argument(
        "--api-url",
        default=os.environ.get("API_URL", "http://localhost:8000"),
        help="Base URL of the running service.",
    )
    parser.add_argument("--api-prefix", default="/api", help="API prefix the service is mounted under.")
    parser.add_argument("--timeout", type=float, default=120.0, help="Per-request timeout in seconds.")
    return parser.parse_args()


def run_case(client: httpx.Client, url: str, case: Dict[str, Any]) -> Dict[str, Any]:
    response = client.post(url, json=case["data"])
    body = response.json()
    if response.status_code != 200:
        raise RuntimeError(body.get("error") or f"HTTP {response.status_code}")

    actual = body["decision"]["decision"]
    return {
        "name": case["name"],
        "expected": case["expected_decision"],
        "actual": actual,
        "passed": actual == case["expected_decision"],
        "confidence": body["decision"]["confidence"],
        "risk_score": body["decision"]["risk_score"],
        "processing_time_ms": body["processing_time_ms"],
    }


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = parse_args()
    cases = json.loads(Path(args.fixtures).read_text(encoding="utf-8"))
    url = f"{args.api_url.rstrip('/')}{args.api_prefix}/analyze"
    logger.info("Loaded %s test cases, posting to %s", len(cases), url)

    details: List[Dict[str, Any]] = []
    passed = failed = errors = 0
    with httpx.Client(timeout=args.timeout) as client:
        for index, case in enumerate(cases, start=1):
            logger.info("[%s/%s] %s (expected %s)", index, len(cases), case["name"], case["expected_decision"])
            try:
                detail = run_case(client, url, case)
            except (httpx.HTTPError, RuntimeError, ValueError, KeyError) as exc:
                logger.error("   ERROR: %s", exc)
                errors += 1
                details.append(
                    {
                        "name": case["name"],
                        "expected": case["expected_decision"],
                        "actual": "ERROR",
                        "passed": False,
                        "error": str(exc),
                    }
                )
                continue

            if detail["passed"]:
                passed += 1
                logger.info("   PASS: %s (confidence %.0f%%)", detail["actual"], detail["confidence"] * 100)
            else:
                failed += 1
                logger.info("   FAIL: got %s, expected %s", detail["actual"], detail["expected"])
            logger.info("   processing time: %sms", detail["processing_time_ms"])
            details.append(detail)

    total = len(cases)
    logger.info("Total: %s  Passed: %s  Failed: %s  Errors: %s", total, passed, failed, errors)
    if total:
        logger.info("Pass rate: %.1f%%", passed / total * 100)
    for detail in details:
        if not detail["passed"]:
            logger.info("  - %s: expected %s, got %s", detail["name"], detail["expected"], detail["actual"])
            if "error" in detail:
                logger.info("    error: %s", detail["error"])

    return 1 if failed or errors else 0


if __name__ == "__main__":
    sys.exit(main())
