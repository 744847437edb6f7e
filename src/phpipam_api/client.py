"""phpIPAM REST client implementing :class:`RegistryClient`."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from ipam_reconciler.errors import (
    RegistryApplicationError,
    RegistryAuthError,
    RegistryError,
    RegistryNotFoundError,
    RegistryTransportError,
    SubnetResolutionError,
)
from ipam_reconciler.models import Reservation, SubnetHandle
from ipam_reconciler.registry_client import RegistryClient

LOG = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_NOTE = "Added by kube-phpipam"
MIN_RENEW_INTERVAL = 1.0


def _exit_process(exc: Exception) -> None:  # pragma: no cover - terminates
    os._exit(1)


class PhpIpamClient(RegistryClient):
    """Talk to the phpIPAM API with token authentication.

    Parameters
    ----------
    host:
        Base URL of the phpIPAM installation, e.g. ``https://ipam.example.com``.
    app_id:
        API application id configured in phpIPAM.
    username / password:
        Credentials exchanged for an API token.
    verify_tls:
        Passed to ``requests`` as ``verify``.
    timeout:
        Per-request timeout in seconds.  ``None`` leaves requests unbounded.
    note:
        Value written into the ``note`` field of created and patched records.
    session:
        Optional ``requests.Session`` (or compatible object) to use.
    on_fatal:
        Called when token renewal fails.  Defaults to terminating the process.
    """

    def __init__(
        self,
        host: str,
        app_id: str,
        username: str,
        password: str,
        *,
        verify_tls: bool = True,
        timeout: Optional[float] = None,
        note: str = DEFAULT_NOTE,
        session: Optional[requests.Session] = None,
        on_fatal: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        if not host.endswith("/"):
            host += "/"
        self._base_url = f"{host}api/{app_id}/"
        self._username = username
        self._password = password
        self._verify = verify_tls
        self._timeout = timeout
        self._note = note
        self._session = session or requests.Session()
        self._on_fatal = on_fatal or _exit_process

        self._lock = Lock()
        self._token: Optional[str] = None
        self._expires: Optional[datetime] = None

        self._stop = Event()
        self._renewer: Optional[Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Authenticate and keep the token fresh in the background."""

        try:
            self.authenticate()
        except RegistryError as exc:
            raise RegistryAuthError(f"initial authentication failed: {exc}") from exc
        self._renewer = Thread(target=self._renew_loop, name="phpipam-token", daemon=True)
        self._renewer.start()

    def close(self) -> None:
        self._stop.set()
        if self._renewer is not None and self._renewer.is_alive():
            self._renewer.join(timeout=5.0)
        self._session.close()

    @property
    def token(self) -> Optional[str]:
        with self._lock:
            return self._token

    @property
    def expires(self) -> Optional[datetime]:
        with self._lock:
            return self._expires

    def authenticate(self) -> None:
        body = self._call(
            "POST", "user/", auth=(self._username, self._password), with_token=False
        )
        if body.get("code") != 200:
            raise RegistryAuthError(f"error in auth request: {body}")

        data = body.get("data") or {}
        try:
            expires = datetime.strptime(str(data.get("expires")), TIME_FORMAT)
        except ValueError as exc:
            raise RegistryAuthError(f"unable to parse token expiry time: {exc}") from exc

        with self._lock:
            if data.get("token"):
                self._token = str(data["token"])
            self._expires = expires
        LOG.info("Authentication completed, token expiry in %s", expires - datetime.now())

    def renew_interval(self) -> float:
        """Seconds until the next renewal: half of the remaining lifetime."""

        expires = self.expires
        if expires is None:
            return MIN_RENEW_INTERVAL
        remaining = (expires - datetime.now()) / 2
        return max(remaining / timedelta(seconds=1), MIN_RENEW_INTERVAL)

    def _renew_loop(self) -> None:
        while not self._stop.wait(self.renew_interval()):
            LOG.info("Authentication timeout expired, retrying authentication")
            try:
                self.authenticate()
            except RegistryError as exc:
                LOG.critical("Unable to extend token: %s", exc)
                self._on_fatal(exc)
                return
        LOG.info("Authentication thread has been cancelled")

    # ------------------------------------------------------------------
    # RegistryClient implementation
    # ------------------------------------------------------------------
    def lookup_subnet_by_range(self, cidr: str) -> SubnetHandle:
        body = self._call("GET", f"subnets/cidr/{cidr}")
        if body.get("code") == 404:
            raise SubnetResolutionError(cidr, 0)
        self._check(body)

        subnets = body.get("data") or []
        if len(subnets) != 1:
            raise SubnetResolutionError(cidr, len(subnets))
        return SubnetHandle(subnet_id=str(subnets[0]["id"]), cidr=cidr)

    def find_reservation(self, address: str) -> List[Reservation]:
        body = self._call("GET", f"addresses/search/{address}/")
        if body.get("code") == 404:
            return []
        self._check(body)
        return [_to_reservation(entry) for entry in body.get("data") or []]

    def create_reservation(
        self, subnet: SubnetHandle, address: str, owner: str
    ) -> Reservation:
        body = self._call(
            "POST",
            "addresses/",
            payload={
                "ip": address,
                "hostname": owner,
                "subnetId": subnet.subnet_id,
                "note": self._note,
            },
        )
        self._check(body)
        return Reservation(
            address=address,
            record_id=str(body.get("id", "")),
            subnet_id=subnet.subnet_id,
            hostname=owner,
            raw=body,
        )

    def update_reservation_owner(self, record_id: str, owner: str) -> None:
        body = self._call(
            "PATCH",
            f"addresses/{record_id}/",
            payload={"hostname": owner, "note": self._note},
        )
        self._check_record(body, record_id)

    def delete_reservation(self, record_id: str) -> None:
        body = self._call("DELETE", f"addresses/{record_id}/")
        self._check_record(body, record_id)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------
    def _call(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        auth: Optional[Tuple[str, str]] = None,
        with_token: bool = True,
    ) -> Dict[str, Any]:
        url = self._base_url + path
        headers = {}
        token = self.token if with_token else None
        if token:
            headers["token"] = token

        try:
            response = self._session.request(
                method,
                url,
                json=payload,
                headers=headers,
                auth=auth,
                verify=self._verify,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise RegistryTransportError(f"error in HTTP {method} {url}: {exc}") from exc

        if response.status_code in (401, 403):
            raise RegistryAuthError(
                f"registry rejected credentials for {method} {url} "
                f"(HTTP {response.status_code})"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise RegistryTransportError(
                f"error unmarshalling {method} response from {url}: {exc}"
            ) from exc
        if not isinstance(body, dict):
            raise RegistryTransportError(f"unexpected {method} response from {url}: {body!r}")
        return body

    @classmethod
    def _check_record(cls, body: Dict[str, Any], record_id: str) -> None:
        if body.get("code") == 404:
            raise RegistryNotFoundError(f"address record {record_id} not found")
        cls._check(body)

    @staticmethod
    def _check(body: Dict[str, Any]) -> None:
        code = body.get("code")
        if not isinstance(code, int) or not 200 <= code <= 299:
            raise RegistryApplicationError(code, str(body.get("message", "")))


def _to_reservation(entry: Dict[str, Any]) -> Reservation:
    subnet_id = entry.get("subnetId")
    return Reservation(
        address=str(entry.get("ip", "")),
        record_id=str(entry["id"]),
        subnet_id=None if subnet_id is None else str(subnet_id),
        hostname=entry.get("hostname"),
        raw=entry,
    )
