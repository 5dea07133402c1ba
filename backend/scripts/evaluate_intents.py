"""
Lightweight intent-routing evaluation runner.

Usage:
  python scripts/evaluate_intents.py --cases eval_cases.jsonl
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List

from sales_insights.chat_logic import answer_question, classify_intent


def _load_cases(path: Path) -> List[Dict[str, Any]]:
    cases: List[Dict[str, Any]] = []
    for i, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        obj = json.loads(line)
        obj["_line"] = i
        cases.append(obj)
    return cases


def _contains_all(haystack: str, needles: List[str]) -> bool:
    h = (haystack or "").lower()
    return all((n or "").lower() in h for n in needles)


def evaluate_case(case: Dict[str, Any]) -> Dict[str, Any]:
    question = case["question"]
    intent = classify_intent(question)
    result = answer_question(question)
    points = result.chart_data

    expected_points = case.get("expected_chart_points")
    checks = {
        "intent_match": intent == case["expected_intent"],
        "text_present": bool(result.text),
        "text_contains": _contains_all(result.text, case.get("text_must_contain") or []),
        "chart_points": (len(points or []) == expected_points) if expected_points is not None else True,
    }
    return {
        "line": case.get("_line"),
        "question": question,
        "intent": intent,
        "checks": checks,
        "passed": all(checks.values()),
    }


def summarize(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = len(results)
    passed = sum(1 for r in results if r["passed"])
    return {
        "total": total,
        "passed": passed,
        "pass_rate": round((passed / total) * 100, 1) if total else 0.0,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Evaluate intent routing against labelled questions.")
    parser.add_argument("--cases", required=True, help="Path to JSONL cases file")
    parser.add_argument("--output", default="", help="Optional path to write JSON report")
    args = parser.parse_args()

    cases = _load_cases(Path(args.cases))
    if not cases:
        print("No test cases found.")
        return 1

    results = [evaluate_case(case) for case in cases]
    summary = summarize(results)

    print(json.dumps(summary, indent=2))
    failed = [r for r in results if not r["passed"]]
    if failed:
        print(f"\nFailed cases: {len(failed)}")
        for f in failed[:10]:
            print(f"- line {f['line']}: {f['question']} (intent={f['intent']}, checks={f['checks']})")

    if args.output:
        Path(args.output).write_text(json.dumps({"summary": summary, "results": results}, indent=2), encoding="utf-8")
        print(f"\nWrote report to {args.output}")

    return 0 if summary["passed"] == summary["total"] else 2


if __name__ == "__main__":
    raise SystemExit(main())
