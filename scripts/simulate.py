"""
Rush-Hour Simulation Script

Fires concurrent customer orders at one QR token, then (with an owner
token) walks every order through the kitchen statuses. Run against a
development server:

    python scripts/simulate.py --qr-token <token> [--owner-token <jwt>] [-n 50]
"""

import argparse
import asyncio
import random
import time
from datetime import datetime
from typing import Any, Optional

import httpx

API_BASE_URL = "http://localhost:5000"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Arjun", "Priya", "Kabir", "Sara", "Dev", "Nila", "Omar"]
MENU_ITEMS = [
    {"name": "Paneer Tikka", "price": 300},
    {"name": "Butter Chicken", "price": 380},
    {"name": "Dal Makhani", "price": 240},
    {"name": "Garlic Naan", "price": 60},
    {"name": "Veg Biryani", "price": 280},
    {"name": "Gulab Jamun", "price": 120},
    {"name": "Masala Chai", "price": 40},
    {"name": "Fresh Lime Soda", "price": 90},
]
KITCHEN_FLOW = ["preparing", "ready", "completed"]


def generate_random_order(qr_token: str) -> dict[str, Any]:
    """Generate a random order payload for /api/orders."""
    items = []
    for menu_item in random.sample(MENU_ITEMS, random.randint(1, 4)):
        items.append({**menu_item, "quantity": random.randint(1, 3)})

    return {
        "token": qr_token,
        "customerName": random.choice(FIRST_NAMES),
        "customerPhone": f"9{random.randint(100000000, 999999999)}",
        "items": items,
        "totalAmount": sum(item["price"] * item["quantity"] for item in items),
        "notes": random.choice([None, "Less spicy", "Extra napkins", "No onions"]),
    }


async def place_order(client: httpx.AsyncClient, qr_token: str, order_num: int) -> dict[str, Any]:
    payload = generate_random_order(qr_token)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        return {"order_num": order_num, "success": False, "error": str(e)[:100],
                "time": round(time.time() - start_time, 3)}

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        data = response.json()["data"]
        return {"order_num": order_num, "success": True, "order_id": data["id"],
                "total": data["totalAmount"], "time": elapsed}
    return {"order_num": order_num, "success": False, "error": response.text[:100], "time": elapsed}


async def advance_order(client: httpx.AsyncClient, owner_token: str, order_id: str) -> bool:
    """Walk one order through the kitchen flow."""
    headers = {"Authorization": f"Bearer {owner_token}"}
    for status in KITCHEN_FLOW:
        response = await client.put(
            f"{API_BASE_URL}/api/orders/{order_id}/status",
            json={"status": status},
            headers=headers,
            timeout=30.0,
        )
        if response.status_code != 200:
            print(f"   ❌ {order_id} -> {status}: {response.text[:100]}")
            return False
        await asyncio.sleep(random.uniform(0.05, 0.2))
    return True


async def run_simulation(qr_token: str, owner_token: Optional[str], num_orders: int) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 RUSH-HOUR SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        results = await asyncio.gather(*[place_order(client, qr_token, i + 1) for i in range(num_orders)])

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        advanced = 0
        if owner_token and successful:
            print(f"\n👨‍🍳 Advancing {len(successful)} orders through {' -> '.join(KITCHEN_FLOW)}...")
            outcomes = await asyncio.gather(
                *[advance_order(client, owner_token, r["order_id"]) for r in successful]
            )
            advanced = sum(outcomes)

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    if owner_token:
        print(f"🍽️  Completed by kitchen: {advanced}/{len(successful)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{sum(r['total'] for r in successful):.2f}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return {"total": num_orders, "successful": len(successful), "failed": len(failed),
            "completed": advanced, "total_time": total_time}


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate a burst of QR menu orders")
    parser.add_argument("--qr-token", required=True, help="Active QR token to order against")
    parser.add_argument("--owner-token", help="Owner bearer token; enables the kitchen flow")
    parser.add_argument("-n", "--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    args = parser.parse_args()

    asyncio.run(run_simulation(args.qr_token, args.owner_token, args.orders))


if __name__ == "__main__":
    main()
