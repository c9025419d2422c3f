"""Fire concurrent onboarding requests for one company.

Smoke check for the one-connected-account-per-company guarantee against a
running gateway: all requests should succeed and the account-status lookup
afterwards should report a single linked account.
"""

import argparse
import asyncio
from uuid import uuid4

import httpx


async def send_one(client: httpx.AsyncClient, base_url: str, company_uuid: str):
    """Send one onboarding request and return (status_code, body text)."""

    resp = await client.post(
        f"{base_url}/stripe/connect",
        json={"companyUUID": company_uuid},
        headers={"x-correlation-id": str(uuid4())},
    )
    return resp.status_code, resp.text


async def main() -> None:
    """CLI entrypoint for onboarding burst smoke tests."""

    parser = argparse.ArgumentParser(description="Send concurrent onboarding requests for one company.")
    parser.add_argument("--base-url", default="http://localhost:5000")
    parser.add_argument("--company-uuid", default=None)
    parser.add_argument("--count", type=int, default=10)
    args = parser.parse_args()
    company_uuid = args.company_uuid or f"burst-company-{uuid4()}"

    statuses: dict[int, int] = {}
    async with httpx.AsyncClient(timeout=30.0) as client:
        results = await asyncio.gather(
            *(send_one(client, args.base_url, company_uuid) for _ in range(args.count))
        )
        for status_code, body in results:
            statuses[status_code] = statuses.get(status_code, 0) + 1
            print(status_code, body)

        status = await client.get(f"{args.base_url}/stripe/account-status/{company_uuid}")

    print("status_counts=", statuses)
    print("account_status=", status.status_code, status.text)
    print("check metrics: onboarding_races_lost_total should stay 0 with the lock in place")


if __name__ == "__main__":
    asyncio.run(main())
