"""Quickstart — write, read, and delete a document.

Demonstrates:
- Building a Database from explicit credentials
- Immediate mutations and their boolean results
- Reading a document back

Set ``KOJI_DATABASE_TEST=1`` to talk to a local server on port 3129.
"""

from __future__ import annotations

import os

from koji_database import Config, Database

if __name__ == "__main__":
    config = Config(
        project_id=os.environ.get("KOJI_PROJECT_ID", "my-project"),
        project_token=os.environ.get("KOJI_PROJECT_TOKEN", "my-token"),
    )

    with Database(config) as db:
        ok = db.set("players", "alice", {"score": 10, "badges": []})
        print(f"set succeeded: {ok}")

        db.update("players", "alice", {"score": Database.value_types.increment(5)})
        db.array_push("players", "alice", {"badges": "first-win"})

        print(f"alice: {db.get('players', 'alice')}")
        print(f"collections: {db.get_collections()}")
        print(f"top players: {db.get_all_where('players', 'score', '>=', [15])}")

        db.delete("players", "alice")
