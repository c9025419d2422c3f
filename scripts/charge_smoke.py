"""Send one payment-intent request to a running gateway and print the result.

Uses Stripe test-mode fixtures by default (`pm_card_visa`), so point the
gateway at a test key before running it.
"""

import argparse
import json
import time
from uuid import uuid4

import httpx


def main() -> None:
    """Parse CLI args and submit one charge."""

    parser = argparse.ArgumentParser(description="Submit one charge through the gateway.")
    parser.add_argument("--base-url", default="http://localhost:5000")
    parser.add_argument("--email", default="smoke@example.com")
    parser.add_argument("--customer-id", default=None, help="Existing customer; created when omitted")
    parser.add_argument("--payment-method-id", default="pm_card_visa")
    parser.add_argument("--amount", type=int, default=5000)
    parser.add_argument("--currency", default="usd")
    parser.add_argument("--company-uuid", default=None)
    parser.add_argument("--token-amount", type=int, default=None)
    args = parser.parse_args()

    headers = {"x-correlation-id": str(uuid4())}
    with httpx.Client(base_url=args.base_url, timeout=30.0, headers=headers) as client:
        customer_id = args.customer_id
        if customer_id is None:
            resp = client.post("/create-stripe-customer", json={"email": args.email})
            resp.raise_for_status()
            customer_id = resp.json()["customerId"]
            print("customer_id=", customer_id)

        payload = {
            "amount": args.amount,
            "currency": args.currency,
            "customerId": customer_id,
            "paymentMethodId": args.payment_method_id,
        }
        if args.company_uuid:
            payload["companyUUID"] = args.company_uuid
        if args.token_amount is not None:
            payload["tokenAmount"] = args.token_amount

        started = time.perf_counter()
        resp = client.post("/create-payment-intent", json=payload)
        latency_ms = (time.perf_counter() - started) * 1000

    print(f"status_code={resp.status_code} latency_ms={latency_ms:.1f}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
