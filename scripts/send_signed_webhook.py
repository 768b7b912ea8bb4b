"""Post a locally signed Paystack webhook to a running membership_billing instance."""

from __future__ import annotations

import argparse
import asyncio
import json
import time
from datetime import datetime, timezone
from typing import Any, Iterable

import httpx

from membership_billing.billing.signatures import SIGNATURE_HEADER, compute_paystack_signature


def build_sample_event(*, event: str, reference: str, email: str, amount: int) -> dict[str, Any]:
    paid_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "data": {
            "id": int(time.time()),
            "status": "success" if event == "charge.success" else "failed",
            "reference": reference,
            "amount": amount,
            "currency": "ZAR",
            "gateway_response": "Approved" if event == "charge.success" else "Declined",
            "paid_at": paid_at,
            "created_at": paid_at,
            "metadata": {},
            "customer": {
                "first_name": "Test",
                "last_name": "Member",
                "email": email,
                "customer_code": "CUS_local_test",
            },
            "authorization": {
                "authorization_code": "AUTH_local_test",
                "last4": "4081",
                "card_type": "visa",
                "reusable": True,
            },
        },
    }


async def _one_request(
    client: httpx.AsyncClient,
    url: str,
    body: bytes,
    signature: str,
) -> tuple[int, float]:
    started_at = time.perf_counter()
    response = await client.post(
        url,
        content=body,
        headers={"Content-Type": "application/json", SIGNATURE_HEADER: signature},
    )
    return response.status_code, time.perf_counter() - started_at


async def deliver(
    *,
    url: str,
    body: bytes,
    signature: str,
    deliveries: int,
    timeout_seconds: float,
) -> list[tuple[int, float]]:
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        return list(
            await asyncio.gather(*(_one_request(client, url, body, signature) for _ in range(deliveries)))
        )


def _format_report(results: list[tuple[int, float]]) -> Iterable[str]:
    for index, (status_code, duration) in enumerate(results, start=1):
        yield f"delivery={index} status={status_code} latency_ms={duration * 1000:.2f}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a signed Paystack webhook for local testing.")
    parser.add_argument("--url", default="http://localhost:8000/api/webhook/paystack")
    parser.add_argument("--secret", required=True, help="Paystack secret key used to sign the body.")
    parser.add_argument("--event", default="charge.success")
    parser.add_argument("--reference", default=f"SUB_{int(time.time() * 1000)}_local")
    parser.add_argument("--email", default="member@example.com")
    parser.add_argument("--amount", type=int, default=39900, help="Amount in minor units.")
    parser.add_argument("--deliveries", type=int, default=1, help="Send the same body N times.")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--bad-signature", action="store_true", help="Corrupt the signature header.")
    args = parser.parse_args()

    if args.deliveries <= 0:
        raise ValueError("--deliveries must be positive")

    event = build_sample_event(
        event=args.event,
        reference=args.reference,
        email=args.email,
        amount=args.amount,
    )
    body = json.dumps(event, separators=(",", ":")).encode("utf-8")
    signature = compute_paystack_signature(body, args.secret)
    if args.bad_signature:
        signature = signature[::-1]

    results = asyncio.run(
        deliver(
            url=args.url,
            body=body,
            signature=signature,
            deliveries=args.deliveries,
            timeout_seconds=args.timeout,
        )
    )
    for line in _format_report(results):
        print(line)


if __name__ == "__main__":
    main()
