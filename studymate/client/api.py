from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

from studymate.config import Config, load_config

from .session import THEME_KEY, Session, TokenStore


THEMES = ("light", "dark")


class ApiError(Exception):
    """Any non-2xx answer. `message` is generic; `detail` is the server's code."""

    def __init__(self, status_code: int, message: str = "request_failed", detail: str | None = None):
        super().__init__(f"{message} (HTTP {status_code})")
        self.status_code = status_code
        self.message = message
        self.detail = detail


class SessionExpired(ApiError):
    def __init__(self, detail: str | None = None):
        super().__init__(401, "session_expired", detail)


def _iso(d: str | date) -> str:
    return d.isoformat() if isinstance(d, date) else str(d)


def _amount(v: Any) -> Any:
    return str(v) if isinstance(v, Decimal) else v


class StudyMateClient:
    """Talks to the StudyMate API on behalf of one front end.

    Every resource call carries the session's bearer token. A 401 from any
    resource ends the session via `Session.invalidate()`. After each
    successful mutation the affected list is fetched again and replaces the
    cached view state (`tasks` / `budget`); the return value is that fresh list.

    `http` is anything with a requests-style `request(method, url, ...)`
    (a `requests.Session` by default).
    """

    def __init__(
        self,
        base_url: str,
        session: Session,
        *,
        http: Any = None,
        timeout_seconds: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.http = http if http is not None else requests.Session()
        self.timeout_seconds = timeout_seconds
        self.tasks: List[Dict[str, Any]] = []
        self.budget: Dict[str, Any] = {"allowance": 0.0, "expenses": []}

    @classmethod
    def from_config(cls, cfg: Config | None = None) -> "StudyMateClient":
        cfg = cfg or load_config()
        return cls(
            cfg.API_URL,
            Session(TokenStore(cfg.TOKEN_PATH)),
            timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS,
        )

    # -----------------------------
    # Transport
    # -----------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        auth: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if auth:
            token = self.session.token
            if not token:
                self.session.invalidate("missing_token")
                raise SessionExpired("missing_token")
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise ApiError(0, "network_error", str(e)) from e

        if r.status_code == 401 and auth:
            self.session.invalidate("unauthorized")
            raise SessionExpired(self._detail(r))
        if not 200 <= r.status_code < 300:
            raise ApiError(r.status_code, "request_failed", self._detail(r))
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    @staticmethod
    def _detail(r: Any) -> Optional[str]:
        try:
            data = r.json()
        except Exception:
            return None
        if isinstance(data, dict) and data.get("detail") is not None:
            return str(data["detail"])
        return None

    # -----------------------------
    # Auth / profile
    # -----------------------------

    def register(self, *, full_name: str, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST",
            "/auth",
            params={"action": "register"},
            json={"fullName": full_name, "username": username, "email": email, "password": password},
            auth=False,
        )
        return data["student"]

    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST",
            "/auth",
            params={"action": "login"},
            json={"username": username, "password": password},
            auth=False,
        )
        self.session.start(data["access_token"])
        student = data.get("student") or {}
        if student.get("theme_preference") in THEMES:
            self.session.store.set(THEME_KEY, student["theme_preference"])
        return student

    def logout(self) -> None:
        self.tasks = []
        self.budget = {"allowance": 0.0, "expenses": []}
        self.session.invalidate("logout")

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/auth", params={"action": "profile"})

    def update_profile(
        self,
        *,
        name: str,
        username: str,
        email: str,
        bio: str | None = None,
        picture: str | None = None,
    ) -> Dict[str, Any]:
        data = self._request(
            "PUT",
            "/auth",
            params={"action": "profile"},
            json={"name": name, "username": username, "email": email, "bio": bio, "picture": picture},
        )
        return data["profile"]

    # -----------------------------
    # Theme (local preference, mirrored to the account when logged in)
    # -----------------------------

    @property
    def theme(self) -> str:
        t = self.session.store.get(THEME_KEY)
        return t if t in THEMES else "light"

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError("invalid_theme")
        self.session.store.set(THEME_KEY, theme)
        if self.session.is_active:
            self._request("PUT", "/auth", params={"action": "profile"}, json={"theme_preference": theme})
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("dark" if self.theme == "light" else "light")

    # -----------------------------
    # Tasks
    # -----------------------------

    def fetch_tasks(self) -> List[Dict[str, Any]]:
        self.tasks = list(self._request("GET", "/tasks") or [])
        return self.tasks

    def add_task(self, *, title: str, subject: str, due_date: str | date, priority: str = "medium") -> List[Dict[str, Any]]:
        self._request(
            "POST",
            "/tasks",
            json={"title": title, "subject": subject.strip(), "due_date": _iso(due_date), "priority": priority},
        )
        return self.fetch_tasks()

    def update_task(
        self,
        task_id: int,
        *,
        title: str,
        subject: str,
        due_date: str | date,
        priority: str | None = None,
        status: str | None = None,
    ) -> List[Dict[str, Any]]:
        body: Dict[str, Any] = {"title": title, "subject": subject.strip(), "due_date": _iso(due_date)}
        if priority is not None:
            body["priority"] = priority
        if status is not None:
            body["status"] = status
        self._request("PUT", f"/tasks/{int(task_id)}", json=body)
        return self.fetch_tasks()

    def set_completed(self, task_id: int, completed: bool) -> List[Dict[str, Any]]:
        self._request("PUT", f"/tasks/{int(task_id)}", json={"completed": bool(completed)})
        return self.fetch_tasks()

    def toggle_complete(self, task_id: int) -> List[Dict[str, Any]]:
        """Flip a task's status based on the server's current value, not the cache."""
        current = next((t for t in self.fetch_tasks() if int(t["id"]) == int(task_id)), None)
        if current is None:
            return self.tasks
        return self.set_completed(task_id, not current["completed"])

    def delete_task(self, task_id: int) -> List[Dict[str, Any]]:
        self._request("DELETE", f"/tasks/{int(task_id)}")
        return self.fetch_tasks()

    # -----------------------------
    # Budget
    # -----------------------------

    def fetch_budget(self) -> Dict[str, Any]:
        data = self._request("GET", "/budget") or {}
        self.budget = {
            "allowance": float(data.get("allowance") or 0),
            "expenses": list(data.get("expenses") or []),
        }
        return self.budget

    def add_expense(self, *, amount: Any, category: str, description: str, expense_date: str | date) -> Dict[str, Any]:
        self._request(
            "POST",
            "/budget",
            json={"amount": _amount(amount), "category": category, "description": description, "date": _iso(expense_date)},
        )
        return self.fetch_budget()

    def delete_expense(self, expense_id: int) -> Dict[str, Any]:
        self._request("DELETE", f"/budget/{int(expense_id)}")
        return self.fetch_budget()

    def set_allowance(self, amount: Any) -> Dict[str, Any]:
        self._request("PUT", "/budget", params={"action": "allowance"}, json={"allowance": _amount(amount)})
        return self.fetch_budget()
