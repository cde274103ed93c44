"""Session binding: the single source of truth for the current identity.

A ``SessionBinding`` holds the access token, the resolved user record and
branch, a loading flag and the last error. It initializes when the first
subscriber attaches and tears down when the last one leaves. Every session
change (sign-in, refresh, sign-out) re-resolves the user record.
"""

import inspect
import logging
from typing import Any, Callable

from desicargo.auth import access
from desicargo.client.api import ApiClient
from desicargo.middleware.exceptions import DesiCargoException

logger = logging.getLogger(__name__)

Listener = Callable[["SessionBinding"], Any]


class SessionBinding:
    def __init__(self, api: ApiClient):
        self.api = api
        self.token: str | None = api.token
        self.refresh_token: str | None = None
        self.user: dict | None = None
        self.branch: dict | None = None
        self.loading = False
        self.error: DesiCargoException | None = None
        self._listeners: list[Listener] = []
        self._active = False

    # ── Subscription lifecycle ───────────────────────────────

    @property
    def active(self) -> bool:
        return self._active

    async def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Attach a listener; the first one initializes the session.

        Returns a zero-argument callable that unsubscribes the listener.
        """
        self._listeners.append(listener)
        if not self._active:
            self._active = True
            if self.token:
                await self.resolve()
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
        if not self._listeners and self._active:
            self._teardown()

    def _teardown(self) -> None:
        self._active = False
        self.user = None
        self.branch = None
        self.loading = False
        self.error = None

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            result = listener(self)
            if inspect.isawaitable(result):
                await result

    # ── Derived state ────────────────────────────────────────

    @property
    def role(self) -> str | None:
        return self.user["role"] if self.user else None

    @property
    def branch_id(self) -> str | None:
        return self.user.get("branch_id") if self.user else None

    # ── Session changes ──────────────────────────────────────

    def _set_tokens(self, access_token: str | None, refresh_token: str | None = None) -> None:
        self.token = access_token
        self.refresh_token = refresh_token
        self.api.token = access_token

    async def resolve(self) -> dict | None:
        """Load the user record and branch for the current token.

        The previously resolved user stays visible while the request is in
        flight; a failed resolution clears it and records the error.
        """
        if not self.token:
            self.user = None
            self.branch = None
            await self._notify()
            return None

        self.loading = True
        self.error = None
        try:
            session = await self.api.get("/api/auth/me")
        except DesiCargoException as e:
            logger.error(f"Session resolution failed: {e.message}")
            self.error = e
            self.user = None
            self.branch = None
            return None
        else:
            self.user = session["user"]
            self.branch = session.get("branch")
            return self.user
        finally:
            self.loading = False
            await self._notify()

    async def sign_in(self, email: str, password: str) -> dict | None:
        self.error = None
        try:
            tokens = await self.api.post(
                "/api/auth/signin", json={"email": email, "password": password}
            )
        except DesiCargoException as e:
            self.error = e
            await self._notify()
            raise
        self._set_tokens(tokens["access_token"], tokens["refresh_token"])
        return await self.resolve()

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        role: str = "staff",
        branch_id: str | None = None,
    ) -> dict:
        """Create a pending identity. No session is established until the
        email is verified and the user signs in."""
        self.error = None
        try:
            return await self.api.post("/api/auth/signup", json={
                "email": email,
                "password": password,
                "confirm_password": password,
                "name": name,
                "role": role,
                "branch_id": branch_id,
            })
        except DesiCargoException as e:
            self.error = e
            raise

    async def refresh(self) -> dict | None:
        if not self.refresh_token:
            return None
        try:
            tokens = await self.api.post(
                "/api/auth/refresh", json={"refresh_token": self.refresh_token}
            )
        except DesiCargoException as e:
            self.error = e
            self._set_tokens(None)
            await self.resolve()
            raise
        self._set_tokens(tokens["access_token"], tokens["refresh_token"])
        return await self.resolve()

    async def sign_out(self) -> None:
        if self.token:
            try:
                await self.api.post("/api/auth/signout")
            except DesiCargoException as e:
                # The local session ends regardless
                logger.warning(f"Server-side sign-out failed: {e.message}")
        self._set_tokens(None)
        self.error = None
        await self.resolve()

    # ── Route guard ──────────────────────────────────────────

    def check(self, allowed_roles=None) -> str | None:
        """Redirect target for a protected view, or None when access is granted."""
        return access.check(self.role, allowed_roles)

    def guard(self, path: str) -> tuple[bool, str | None]:
        """(allowed, redirect) for a page path under the route policy."""
        return access.decide(path, self.role)
