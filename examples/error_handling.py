"""Error handling — typed errors from reads, booleans from writes.

Reads and object-store calls raise DocumentNotFound or ServiceError.
Writes never raise on service failures; they return False.
"""

from __future__ import annotations

from koji_database import ConfigurationMissing, Database, DocumentNotFound, KojiDatabaseError, ServiceError

if __name__ == "__main__":
    try:
        db = Database()
    except ConfigurationMissing as exc:
        raise SystemExit(f"Missing credentials: {exc}") from exc

    with db:
        try:
            db.get("players", "nobody")
        except DocumentNotFound as exc:
            print(f"DocumentNotFound: {exc}")
            print(f"  collection={exc.collection}, document_name={exc.document_name}")
        except ServiceError as exc:
            print(f"ServiceError (status {exc.status_code}): {exc}")

        if not db.update("players", "nobody", {"score": 1}):
            print("update failed; see the koji_database logger for the cause")

        try:
            db.commit_transaction()
        except KojiDatabaseError as exc:
            print(f"{type(exc).__name__}: {exc}")
