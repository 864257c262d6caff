"""Lightweight REST client for the weekpicks API."""

from __future__ import annotations

import argparse
import json

import httpx


def build_mapping(raw: str) -> dict[str, str]:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid mapping JSON: {exc}") from exc


def _print(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        raise SystemExit(f"HTTP {resp.status_code}: {resp.text}")
    print(json.dumps(resp.json(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the weekpicks REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("contest_id", help="Contest identifier")
    parser.add_argument("--participant", help="Participant id sent as X-Participant-Id")
    parser.add_argument("--admin-token", help="Admin token sent as X-Admin-Token")
    parser.add_argument("--period", type=int, help="Period to act on")
    parser.add_argument("--picks", default="", help='JSON slot mapping, e.g. {"QB": "p1", "RB": "p2", "FLEX": "p3"}')
    parser.add_argument("--names", default="", help="JSON slot -> player display name mapping")
    parser.add_argument("--periods", action="store_true", help="List period states and exit")
    parser.add_argument("--reveal", action="store_true", help="Show the reveal status for --period")
    parser.add_argument("--leaderboard", action="store_true", help="Show standings (restricted to --period if set)")
    parser.add_argument("--refresh", action="store_true", help="Trigger a stats refresh for --period")
    parser.add_argument("--force", action="store_true", help="Bypass the refresh interval")
    args = parser.parse_args()

    headers: dict[str, str] = {}
    if args.participant:
        headers["X-Participant-Id"] = args.participant
    if args.admin_token:
        headers["X-Admin-Token"] = args.admin_token

    base = f"/contests/{args.contest_id}"
    with httpx.Client(base_url=args.base_url, headers=headers) as client:
        if args.periods:
            _print(client.get(f"{base}/periods"))
            return
        if args.leaderboard:
            params = {"period": args.period} if args.period is not None else None
            _print(client.get(f"{base}/leaderboard", params=params))
            return
        if args.period is None:
            raise SystemExit("--period is required for picks, reveal and refresh")
        if args.refresh:
            _print(
                client.post(
                    f"/admin{base}/periods/{args.period}/refresh-stats",
                    params={"force": str(args.force).lower()},
                )
            )
            return
        if args.reveal:
            _print(client.get(f"{base}/periods/{args.period}/reveal"))
            return
        picks = build_mapping(args.picks)
        if picks:
            payload = {"picks": picks, "player_names": build_mapping(args.names)}
            _print(client.put(f"{base}/periods/{args.period}/picks", json=payload))
        else:
            _print(client.get(f"{base}/periods/{args.period}/picks"))


if __name__ == "__main__":
    main()
