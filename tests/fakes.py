"""
In-memory stand-in for the parts of the Supabase client the services use:
table query builders (select/insert/update/eq/order/range/limit/execute) and
storage buckets (upload/get_public_url/create_signed_url/remove/list).
"""

import copy
import uuid
from dataclasses import dataclass
from typing import Any

BASE_URL = "https://fake.supabase.co"


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.orders = []
        self.window = None
        self.max_rows = None
        self.count_mode = None

    # ---- operations ----
    def select(self, columns="*", count=None):
        self.op, self.columns, self.count_mode = "select", columns, count
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # ---- filters / modifiers ----
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    # ---- execution ----
    def _matching(self) -> list[dict]:
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def execute(self) -> FakeResponse:
        if (self.table, self.op) in self.db.failures:
            raise RuntimeError(f"simulated {self.op} failure on {self.table}")
        self.db.calls.append((self.table, self.op))

        if self.op == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = []
            for row in rows:
                row = copy.deepcopy(row)
                row.setdefault("id", str(uuid.uuid4()))
                self.db.tables.setdefault(self.table, []).append(row)
                stored.append(copy.deepcopy(row))
            return FakeResponse(data=stored)

        matched = self._matching()

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(data=copy.deepcopy(matched))

        if self.op == "delete":
            table = self.db.tables[self.table]
            self.db.tables[self.table] = [r for r in table if r not in matched]
            return FakeResponse(data=copy.deepcopy(matched))

        rows = copy.deepcopy(matched)
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(rows) if self.count_mode else None
        if self.window:
            start, end = self.window
            rows = rows[start:end + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        if self.columns != "*":
            keep = [c.strip() for c in self.columns.split(",")]
            rows = [{k: r.get(k) for k in keep} for r in rows]
        return FakeResponse(data=rows, count=total)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name
        self.objects: dict[str, dict] = {}

    def upload(self, path, file, file_options=None):
        if file in self.storage.reject_data:
            raise RuntimeError("simulated upload failure")
        if path in self.objects:
            raise RuntimeError("The resource already exists")
        self.objects[path] = {"data": file, "options": file_options or {}}
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"{BASE_URL}/storage/v1/object/public/{self.name}/{path}"

    def create_signed_url(self, path, expires_in):
        return {"signedURL": f"{BASE_URL}/storage/v1/object/sign/{self.name}/{path}?token=signed&expires_in={expires_in}"}

    def remove(self, paths):
        return [{"name": p} for p in paths if self.objects.pop(p, None) is not None]

    def list(self, path=None, options=None):
        search = (options or {}).get("search", "")
        entries = []
        for key, obj in self.objects.items():
            folder, _, name = key.rpartition("/")
            if folder == (path or "") and search in name:
                entries.append({
                    "name": name,
                    "updated_at": "2024-01-01T00:00:00+00:00",
                    "metadata": {
                        "size": len(obj["data"]),
                        "mimetype": obj["options"].get("content-type"),
                    },
                })
        return entries


class FakeStorage:
    def __init__(self):
        self.buckets: dict[str, FakeBucket] = {}
        self.reject_data: set[bytes] = set()

    def from_(self, name):
        return self.buckets.setdefault(name, FakeBucket(self, name))

    def get_bucket(self, name):
        if name not in self.buckets:
            raise RuntimeError("Bucket not found")
        return {"id": name, "name": name}

    def create_bucket(self, name, options=None):
        self.buckets[name] = FakeBucket(self, name)
        return {"name": name}


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.storage = FakeStorage()
        self.failures: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table: str, op: str) -> None:
        """Make every later `op` on `table` raise."""
        self.failures.add((table, op))

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])
