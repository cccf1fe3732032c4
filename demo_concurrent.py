import asyncio
from sdk.posclient import PosClient


async def simulate_sale(client, seller, product_id, qty):
    r = await client.create_sale_async(seller, [(product_id, qty)], "transfer")
    body = r.json()
    if r.status_code == 201:
        print(f"✅ {seller} sold {qty} units (Sale ID: {body['id']}, Total: {body['total_cents']} cents)")
    elif r.status_code == 409:
        print(f"❌ {seller} sale rejected: {body['detail']['message']}")
    elif r.status_code == 404:
        print(f"❌ {seller} sale rejected: product not found.")
    else:
        print(f"⚠️  {seller} unexpected response {r.status_code}: {body}")


async def main():
    c = PosClient()
    c.reset()

    product = c.register_product("4006381333931", "Highlighter pack", 900, 2500, 10, "writing")
    product_id = product["id"]
    print(f"\n🖊️  Registered product: {product}")

    # Two tills try to sell 6 of the 10 units at the same time
    print("\n⚡ Simulating concurrent sales...")
    await asyncio.gather(
        simulate_sale(c, "till-1", product_id, 6),
        simulate_sale(c, "till-2", product_id, 6),
    )

    print("\n📦 Final product state:", c.get_product(product_id))
    print("🧾 Sales:", c.list_sales())


if __name__ == "__main__":
    asyncio.run(main())
