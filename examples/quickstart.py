#!/usr/bin/env python3
"""
OrderGate Quickstart — customer session and one order, end to end.

Registers a customer → logs in → reads /me → places an order → reads it back.
Run with: python examples/quickstart.py [MENU_ID] [QUANTITY]

Requires: pip install httpx
Backend must be running: http://localhost:8000, with at least one priced
menu item in tbl_menus.
"""

import sys

from _common import create_client


def main():
    menu_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    quantity = int(sys.argv[2]) if len(sys.argv) > 2 else 2

    client = create_client("customer")

    # ── Who am I? ─────────────────────────────────────────────────
    print("\n1. Reading the session identity...")
    resp = client.get("/customers/auth/me")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    me = resp.json()
    print(f"   Customer: {me['username']} (id {me['id']})")

    # ── Place order ───────────────────────────────────────────────
    print(f"\n2. Ordering {quantity} × menu item {menu_id}...")
    resp = client.post("/orders", json={"menu_id": menu_id, "quantity": quantity})
    if resp.status_code == 404:
        print(f"   Menu item {menu_id} does not exist (or has no price).")
        sys.exit(1)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    placed = resp.json()
    print(f"   Order #{placed['order_id']}: {placed['unit_price']} each, total {placed['total_price']}")

    # ── Read it back ──────────────────────────────────────────────
    print("\n3. Reading the order back...")
    resp = client.get(f"/orders/{placed['order_id']}")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    order = resp.json()
    for item in order["items"]:
        print(f"   {item['quantity']} × menu {item['menu_id']} @ {item['unit_price']} = {item['subtotal']}")

    # ── Rejected order ────────────────────────────────────────────
    print("\n4. A zero quantity is rejected and writes nothing...")
    resp = client.post("/orders", json={"menu_id": menu_id, "quantity": 0})
    print(f"   {resp.status_code}: {resp.json()['error']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
