"""
Management clients: the only code that talks to a controller.

UcsmClient speaks the UCS Manager XML API over HTTPS. SnapshotClient replays a
saved collection snapshot. Both return plain dict records (XML attributes),
in the controller's native order.
"""

import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

import requests
import urllib3

from ._util import debug as _debug_fn
from .errors import ControllerConnectionError, QueryError
from .schema import CollectionSnapshot, EntityRecord


def _debug(msg: str) -> None:
    _debug_fn("client", msg)


class ManagementClient:
    """Base interface. Subclasses implement connect/query/close."""

    endpoint: str = ""

    def __init__(self) -> None:
        self.meta: dict = {}

    def connect(self) -> None:
        raise NotImplementedError

    def query(self, kind: str, parent: Optional[EntityRecord] = None) -> List[EntityRecord]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> "ManagementClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ---------------------------------------------------------------------------
# UCS Manager XML API
# ---------------------------------------------------------------------------

class UcsmClient(ManagementClient):
    """Session against one UCS Manager at https://<endpoint>/nuova."""

    def __init__(
        self,
        endpoint: str,
        username: str,
        password: str,
        verify_tls: bool = False,
        timeout: float = 30,
    ) -> None:
        super().__init__()
        self.endpoint = endpoint
        self.username = username
        self._password = password
        self.verify_tls = verify_tls
        self.timeout = timeout
        self.url = f"https://{endpoint}/nuova"
        self._session: Optional[requests.Session] = None
        self._cookie: Optional[str] = None
        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def __repr__(self) -> str:
        return f"UcsmClient(endpoint={self.endpoint!r}, username={self.username!r})"

    def _post(self, element: ET.Element) -> ET.Element:
        """POST one XML method; return the parsed response root. Raises requests/XML errors."""
        if self._session is None:
            raise QueryError(f"{self.endpoint}: {element.tag} issued without a session")
        body = ET.tostring(element, encoding="unicode")
        resp = self._session.post(
            self.url,
            data=body,
            headers={"Content-Type": "application/xml"},
            verify=self.verify_tls,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return ET.fromstring(resp.text)

    def connect(self) -> None:
        self._session = requests.Session()
        login = ET.Element("aaaLogin", inName=self.username, inPassword=self._password)
        try:
            root = self._post(login)
        except (requests.RequestException, ET.ParseError) as exc:
            self._session.close()
            self._session = None
            raise ControllerConnectionError(f"{self.endpoint}: login failed: {exc}") from exc
        if root.get("errorCode") or not root.get("outCookie"):
            self._session.close()
            self._session = None
            descr = root.get("errorDescr") or "no session cookie returned"
            raise ControllerConnectionError(f"{self.endpoint}: login rejected: {descr}")
        self._cookie = root.get("outCookie")
        self.meta = {
            "endpoint": self.endpoint,
            "controller_name": root.get("outName", ""),
            "controller_version": root.get("outVersion", ""),
        }
        _debug(f"logged in to {self.endpoint} (version {self.meta['controller_version'] or '?'})")

    def query(self, kind: str, parent: Optional[EntityRecord] = None) -> List[EntityRecord]:
        if self._cookie is None:
            raise QueryError(f"{self.endpoint}: query {kind} issued without a session")
        if parent is None:
            method = ET.Element(
                "configResolveClass", cookie=self._cookie, classId=kind, inHierarchical="false",
            )
        else:
            method = ET.Element(
                "configResolveChildren", cookie=self._cookie, inDn=parent.get("dn", ""),
                classId=kind, inHierarchical="false",
            )
        try:
            root = self._post(method)
        except (requests.RequestException, ET.ParseError) as exc:
            raise QueryError(f"{self.endpoint}: query {kind} failed: {exc}") from exc
        if root.get("errorCode"):
            raise QueryError(
                f"{self.endpoint}: query {kind} rejected "
                f"({root.get('errorCode')}: {root.get('errorDescr', '')})"
            )
        records = parse_out_configs(root, kind)
        _debug(f"{kind}{' under ' + parent.get('dn', '') if parent else ''}: {len(records)} records")
        return records

    def close(self) -> None:
        if self._session is None:
            return
        if self._cookie is not None:
            try:
                self._post(ET.Element("aaaLogout", inCookie=self._cookie))
            except (requests.RequestException, ET.ParseError) as exc:
                _debug(f"logout from {self.endpoint} failed: {exc}")
        self._session.close()
        self._session = None
        self._cookie = None


def parse_out_configs(root: ET.Element, kind: str) -> List[EntityRecord]:
    """Collect the attributes of every *kind* element under <outConfigs>."""
    out = root.find("outConfigs")
    if out is None:
        return []
    return [dict(el.attrib) for el in out.iter(kind)]


# ---------------------------------------------------------------------------
# Offline replay
# ---------------------------------------------------------------------------

class SnapshotClient(ManagementClient):
    """Serves queries from a CollectionSnapshot. Unknown kinds yield no records."""

    def __init__(self, snapshot: CollectionSnapshot) -> None:
        super().__init__()
        self.snapshot = snapshot
        self.endpoint = snapshot.meta.get("endpoint", "snapshot")
        self.meta = dict(snapshot.meta)

    def connect(self) -> None:
        pass

    def query(self, kind: str, parent: Optional[EntityRecord] = None) -> List[EntityRecord]:
        if parent is None:
            records = self.snapshot.classes.get(kind, [])
        else:
            records = self.snapshot.children.get(parent.get("dn", ""), {}).get(kind, [])
        return [dict(r) for r in records]

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Per-target fetch cache
# ---------------------------------------------------------------------------

class RecordingCache:
    """Issues each (kind, parent dn) query at most once and remembers the result.

    Sections that share a kind therefore see the same records, and the cache
    contents double as the target's collection snapshot.
    """

    def __init__(self) -> None:
        self._results: Dict[Tuple[str, Optional[str]], List[EntityRecord]] = {}
        self.queries_issued = 0

    def fetch(
        self,
        client: ManagementClient,
        kind: str,
        parent: Optional[EntityRecord] = None,
    ) -> List[EntityRecord]:
        key = (kind, parent.get("dn", "") if parent is not None else None)
        if key not in self._results:
            self._results[key] = client.query(kind, parent)
            self.queries_issued += 1
        else:
            _debug(f"cache hit: {kind}")
        return [dict(r) for r in self._results[key]]

    def to_snapshot(self, meta: Optional[dict] = None) -> CollectionSnapshot:
        snap = CollectionSnapshot(meta=dict(meta or {}))
        for (kind, parent_dn), records in self._results.items():
            if parent_dn is None:
                snap.classes[kind] = [dict(r) for r in records]
            else:
                snap.children.setdefault(parent_dn, {})[kind] = [dict(r) for r in records]
        return snap
