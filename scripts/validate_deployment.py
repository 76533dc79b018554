"""
Pre-Deploy and Smoke Test Script.

Runs the deployed code in-process against the configured database and Redis:
1. Health Check
2. Account creation -> payment entry -> ledger replay
3. Invoice serial lookup
"""

import sys
import uuid

from fastapi.testclient import TestClient
from freight_backend.app.main import app
from freight_backend.app.core.jwt import create_access_token

def print_step(step, msg):
    print(f"[{step}] {msg}")

def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)

def success(msg):
    print(f"✅ {msg}")

def main():
    print("🚀 Starting Deployment Validation...")

    with TestClient(app) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        response = client.get("/health")
        if response.status_code != 200:
            fail(f"Health check failed: {response.status_code} {response.text}")
        health = response.json()
        if health.get("redis") != "up":
            fail("Redis is not reachable; document numbering would fail")
        success(f"Healthy: {health}")

        # 2. Accounts token (tokens are normally issued by the auth service)
        print_step("AUTH", "Minting ACCOUNTS token...")
        token = create_access_token(data={"sub": "deploy_bot", "role": "ACCOUNTS", "user_id": 1})
        headers = {"Authorization": f"Bearer {token}"}

        # 3. Smoke Test: ledger flow on a throwaway account
        account_code = f"SMOKE-{uuid.uuid4().hex[:8].upper()}"
        print_step("SMOKE", f"Creating account {account_code}...")
        res = client.post("/v1/accounts", headers=headers, json={
            "account_code": account_code,
            "name": "Deployment smoke test",
            "opening_balance": "500.00",
        })
        if res.status_code != 201:
            fail(f"Account creation failed: {res.status_code} {res.text}")

        print_step("SMOKE", "Recording payment entry...")
        res = client.post(f"/v1/accounts/{account_code}/payments", headers=headers, json={
            "amount": "125.50",
            "mode": "NEFT",
            "payment_date": "2024-04-01",
            "receipt_type": "General Entry",
        })
        if res.status_code != 201:
            fail(f"Payment entry failed: {res.status_code} {res.text}")
        success(f"Receipt #{res.json()['entry']['receipt_no']} recorded")

        print_step("VERIFY", "Replaying ledger...")
        res = client.get(f"/v1/accounts/{account_code}/ledger", headers=headers)
        if res.status_code != 200:
            fail(f"Ledger read failed: {res.status_code} {res.text}")
        closing = res.json()["closing_balance"]
        if float(closing) != 374.50:
            fail(f"Unexpected closing balance {closing}, expected 374.50")
        success(f"Closing balance {closing}")

        # 4. Sequence counters
        print_step("VERIFY", "Checking invoice serial counter...")
        res = client.get("/v1/invoices/next-serial", headers=headers)
        if res.status_code != 200:
            fail(f"Next serial failed: {res.status_code} {res.text}")
        success(f"Next invoice serial: {res.json()['next_serial_no']}")

    print("\n🎉 Deployment validation passed")

if __name__ == "__main__":
    main()
