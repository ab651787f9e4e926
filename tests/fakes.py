"""
In-memory stand-in for the parts of the Supabase client the app uses.

Tables are lists of dicts. Failures are injected per (table, operation) so a
test can make exactly one step of a workflow fail.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
import uuid

_GENERATED_COLUMNS = {
    "clicks": ("id", "created_at", "updated_at"),
    "click_members": ("joined_at",),
    "profiles": ("created_at", "updated_at"),
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = None
        self.payload = None
        self.columns = "*"
        self.filters = []
        self._order = None
        self._limit = None
        self._offset = 0

    def select(self, columns: str = "*"):
        if self.op is None:
            self.op = "select"
        self.columns = columns
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def offset(self, n):
        self._offset = n
        return self

    def _matches(self):
        return [r for r in self.db.tables.setdefault(self.table, []) if all(f(r) for f in self.filters)]

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        names = [c.strip() for c in self.columns.split(",")]
        return {n: row.get(n) for n in names}

    def execute(self):
        self.db.calls.append((self.table, self.op, self.payload))
        injected = self.db._take_failure(self.table, self.op)
        if injected is not None:
            if isinstance(injected, BaseException):
                raise injected
            if self.op != "select":
                self.db.writes.append((self.table, self.op, self.payload))
            return SimpleNamespace(data=injected)

        if self.op == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for row in rows:
                row = dict(row)
                for column in _GENERATED_COLUMNS.get(self.table, ()):
                    if row.get(column) is None:
                        row[column] = str(uuid.uuid4()) if column == "id" else _now()
                self.db.tables.setdefault(self.table, []).append(row)
                created.append(dict(row))
            self.db.writes.append((self.table, "insert", self.payload))
            return SimpleNamespace(data=created)

        matched = self._matches()
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            self.db.writes.append((self.table, "update", self.payload))
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.op == "delete":
            remaining = [r for r in self.db.tables[self.table] if r not in matched]
            self.db.tables[self.table] = remaining
            self.db.writes.append((self.table, "delete", None))
            return SimpleNamespace(data=[dict(r) for r in matched])

        rows = matched
        if self._order:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: r.get(column) or "", reverse=desc)
        rows = rows[self._offset:]
        if self._limit is not None:
            rows = rows[:self._limit]
        return SimpleNamespace(data=[self._project(r) for r in rows])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, contents, options=None):
        if self.storage.upload_error is not None:
            raise self.storage.upload_error
        self.storage.objects[(self.name, path)] = (contents, options or {})
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects: Dict[tuple, tuple] = {}
        self.upload_error: Optional[BaseException] = None

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSubscription:
    def __init__(self, auth: "FakeAuth", callback):
        self.auth = auth
        self.callback = callback

    def unsubscribe(self):
        self.auth.listeners.remove(self.callback)


class FakeAdminAuth:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth
        self.revoked: List[str] = []

    def sign_out(self, jwt, scope="global"):
        if self.auth.users_by_token.pop(jwt, None) is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        self.revoked.append(jwt)


class FakeAuth:
    def __init__(self):
        self.users_by_token: Dict[str, Any] = {}
        self.passwords: Dict[str, tuple] = {}
        self.listeners: List[Any] = []
        self.get_user_calls = 0
        self.admin = FakeAdminAuth(self)

    def add_user(self, user_id: str, email: str, token: str):
        user = self._user(user_id, email)
        self.users_by_token[token] = user
        return user

    def _user(self, user_id: str, email: str):
        return SimpleNamespace(
            id=user_id,
            email=email,
            user_metadata={},
            app_metadata={},
            created_at=_now(),
            updated_at=None,
        )

    def get_user(self, jwt=None):
        self.get_user_calls += 1
        user = self.users_by_token.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.passwords:
            raise Exception("User already registered")
        user = self._user(str(uuid.uuid4()), email)
        self.passwords[email] = (credentials["password"], user)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        entry = self.passwords.get(credentials["email"])
        if entry is None or entry[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = entry[1]
        session = SimpleNamespace(access_token=f"token-{user.id}", refresh_token="refresh", user=user)
        self.users_by_token[session.access_token] = user
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_oauth(self, credentials):
        self.last_oauth = credentials
        return SimpleNamespace(
            provider=credentials["provider"],
            url=f"https://fake.supabase.co/auth/v1/authorize?provider={credentials['provider']}",
        )

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, event, session):
        for callback in list(self.listeners):
            callback(event, session)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.calls: List[tuple] = []
        self.writes: List[tuple] = []
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self._failures: Dict[tuple, list] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail_on(self, table: str, op: str, error: BaseException, times: int = 1, after: int = 0):
        """Let `after` calls of `op` on `table` through, then make `times` calls raise `error`."""
        self._failures.setdefault((table, op), []).extend([None] * after + [error] * times)

    def respond_with(self, table: str, op: str, rows: list):
        """Make the next call of `op` on `table` return `rows` without touching the table."""
        self._failures.setdefault((table, op), []).append(rows)

    def _take_failure(self, table: str, op: str):
        queue = self._failures.get((table, op))
        if queue:
            return queue.pop(0)
        return None

    def writes_to(self, table: str, op: str = "insert") -> List[tuple]:
        return [w for w in self.writes if w[0] == table and w[1] == op]

    def rows(self, table: str) -> List[dict]:
        return list(self.tables.get(table, []))
