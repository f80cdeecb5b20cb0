"""examples/multithreaded_usage.py - Tagging from many threads.

Worker threads tag events into one per-order tag each, plus a shared
"inventory" tag. The registry is thread-safe, so each order's report holds
exactly its own events, and the shared tag holds every worker's events.

Run:
    python examples/multithreaded_usage.py
"""

import logging
import threading
import time

import taglog
from taglog import Level

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] [thread=%(threadName)s] %(message)s",
)

STOCK = {1: 10, 2: 0, 3: 5}  # product 2 is out of stock


def place_order(order_id: int, product_id: int, qty: int) -> None:
    name = f"order-{order_id}"
    taglog.tag(name, {"order_id": order_id, "product_id": product_id, "qty": qty}, level=Level.INFO)
    time.sleep(0.01)
    available = STOCK.get(product_id, 0)
    taglog.tag("inventory", f"product {product_id}: {available} left")

    if available < qty:
        taglog.tag(name, "Insufficient stock", level=Level.ERROR, error=f"available={available}")
    else:
        taglog.tag(name, "Order placed", level=Level.INFO)

    # Only the failed order produces a report on stderr.
    taglog.export(name, only_on_error=True)


if __name__ == "__main__":
    threads = [
        threading.Thread(target=place_order, args=(n, n, 1), name=f"worker-{n}")
        for n in (1, 2, 3)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    print(f"inventory events recorded: {taglog.entry_count('inventory')}")
    taglog.clear("inventory")
