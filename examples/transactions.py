"""Transactions — queue several writes and commit them in one request.

Demonstrates:
- begin_transaction() / commit_transaction()
- The transaction() context manager
- Reads being rejected while a transaction is open
"""

from __future__ import annotations

from koji_database import Database, UnavailableInTransaction

if __name__ == "__main__":
    # Credentials come from KOJI_PROJECT_ID / KOJI_PROJECT_TOKEN.
    with Database() as db:
        tx = db.begin_transaction()
        tx.set("orders", "o-1", {"status": "new", "items": []})
        tx.array_push("orders", "o-1", {"items": "sku-42"})
        tx.update("orders", "o-1", {"status": "paid"})

        try:
            tx.get("orders", "o-1")
        except UnavailableInTransaction as exc:
            print(f"Rejected: {exc}")

        tx.commit_transaction()
        print(f"o-1 after commit: {db.get('orders', 'o-1')}")

        with db.transaction() as batch:
            batch.delete("orders", "o-1")
        print("o-1 deleted")
