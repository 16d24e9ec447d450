"""
ECPP API client - the four business operations behind the MCP tools.

Every call is a JSON request against one base URL. Authenticated calls carry
the session token in a header (``Authorization`` by default). Responses share
the envelope ``{"status": {"code", "message"}, "data": {...}}``.

Failure posture:
- ``login`` and ``create_business_sender`` raise, since a partial answer is
  meaningless to the caller.
- ``search_senders`` and ``list_created_reviews`` turn failures into an
  explanatory line so the conversation can continue.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Type

import httpx
from pydantic import ValidationError

from ecppbridge.ecpp.models import BatchSummary, BusinessSenderFields, Profile, SenderSummary
from ecppbridge.ecpp.session import SessionContext
from ecppbridge.errors import AuthError, ParseError, RemoteError, TransportError
from ecppbridge.validation.config import Config

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
AUTHENTICATE_PATH = "/auth/authenticate"
PROFILE_PATH = "/auth/me"
SENDER_SEARCH_PATH = "/senders/search"
BUSINESS_SENDER_PATH = "/senders/business"
CREATED_BATCHES_PATH = "/transfer-batch/created-by-you"

SESSION_COOKIE = "emqsess"
_SESSION_RE = re.compile(rf"{SESSION_COOKIE}=([^;]+)")

NOT_LOGGED_IN = "Error: No valid session ID. Please login again."
NO_SENDERS = "No senders found matching your criteria."
NO_BATCHES = "No transfer batches created by you."
SEARCH_PAGE_SIZE = 20
RAW_PREFIX_CHARS = 100


def extract_session_id(text: str) -> Optional[str]:
    """Return the ``emqsess`` value embedded in a cookie string, if any."""
    match = _SESSION_RE.search(text or "")
    return match.group(1) if match else None


class ECPPClient:
    """
    Client for the ECPP business API.

    Owns the SessionContext: a successful ``login`` stores the token and every
    later authenticated call reads it.

    Example:
        >>> client = ECPPClient("http://localhost:18000/api/v1")
        >>> client.login("alice", "secret").username
        'alice'
        >>> client.search_senders("acme")
        ['Business: Acme Ltd']
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionContext] = None,
        auth_header: str = "Authorization",
        timeout: float = 30,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:18000/api/v1``.
            session: Session holder. A fresh, empty one when omitted.
            auth_header: Header carrying the session token.
            timeout: Per-request timeout in seconds.
            http_client: Preconfigured httpx client (its base URL wins).
        """
        self.session = session or SessionContext()
        self.auth_header = auth_header
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    @classmethod
    def from_config(cls, config: Config) -> "ECPPClient":
        ecpp = config.merged.ecpp
        return cls(ecpp.base_url, auth_header=ecpp.auth_header, timeout=ecpp.timeout)

    def close(self) -> None:
        self._http.close()

    # ── Operations ────────────────────────────────────────────────────────

    def login(self, username: str, password: str) -> Profile:
        """
        Log in, authenticate the session and fetch the user's profile.

        Raises:
            AuthError: No session identifier or no user data was returned.
            TransportError: The API could not be reached.
            ParseError: The authenticate or profile response is not JSON.
        """
        response = self._request(
            "POST", LOGIN_PATH, {"username": username, "password": password, "admin": False}
        )
        session_id = self._session_id_from_login(response)
        if not session_id:
            raise AuthError(f"login failed, no {SESSION_COOKIE}")

        auth_result = self._decode(self._request("POST", AUTHENTICATE_PATH, {SESSION_COOKIE: session_id}))
        if not auth_result.get("data"):
            raise AuthError("no user data")

        me = self._decode(self._request("GET", PROFILE_PATH, {SESSION_COOKIE: session_id}))
        profile_data = me.get("data") if isinstance(me.get("data"), dict) else me

        self.session.set_token(session_id)
        logger.info("Logged in as %s (session %s)", username, self.session.masked())
        return Profile.from_payload(profile_data)

    def search_senders(self, name_filter: str = "") -> List[str]:
        """Search senders by name. Returns one display line per sender."""
        if not self.session.is_authenticated:
            logger.error("try to search senders but no valid session ID found")
            return [NOT_LOGGED_IN]

        body = {
            "page": 1,
            "name": name_filter,
            "recipient_name": "",
            "page_size": SEARCH_PAGE_SIZE,
            "include_recipeint": False,  # sic, the API's field name
        }
        logger.info("Searching senders with name: %s", name_filter)
        logger.debug("Using session ID: %s", self.session.masked())

        result, failure = self._fetch_for_listing(SENDER_SEARCH_PATH, body)
        if failure:
            return [failure]

        data = result.get("data")
        senders = data.get("senders") if isinstance(data, dict) else None
        if not isinstance(senders, list):
            code, _ = self._status(result)
            return [f"No senders data found. Response status: {code if code is not None else 'unknown'}"]
        if not senders:
            return [NO_SENDERS]
        return self._render_rows(senders, SenderSummary, "sender")

    def create_business_sender(self, fields: BusinessSenderFields) -> str:
        """
        Create a business sender and return a confirmation line.

        Raises:
            UnauthenticatedError: No session token.
            RemoteError: The API answered with a non-200 status.
        """
        result = self._decode(
            self._request("POST", BUSINESS_SENDER_PATH, fields.to_request_body(), authenticated=True)
        )
        code, message = self._status(result)
        if code != 200:
            raise RemoteError(message or f"sender creation failed with status {code}", code=code)

        data = result.get("data") or {}
        business = data.get("business") or {}
        return f"{business.get('company_name') or fields.company_name} created successfully"

    def list_created_reviews(self) -> List[str]:
        """List transfer batches created by the current user, one line per batch."""
        if not self.session.is_authenticated:
            logger.error("try to list created batches but no valid session ID found")
            return [NOT_LOGGED_IN]

        body = {"page_number": 0, "status": -1, "business_type": "all"}
        result, failure = self._fetch_for_listing(CREATED_BATCHES_PATH, body)
        if failure:
            return [failure]

        code, message = self._status(result)
        if code is not None and code != 200:
            return [f"Failed to list transfer batches: {message or code}"]

        data = result.get("data")
        batches = data.get("batches") if isinstance(data, dict) else None
        if not batches or not isinstance(batches, list):
            return [NO_BATCHES]
        return self._render_rows(batches, BatchSummary, "transfer batch")

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    def _request(
        self, method: str, path: str, body: Dict[str, Any], authenticated: bool = False
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if authenticated:
            headers[self.auth_header] = self.session.require_token()
        try:
            return self._http.request(method, path, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body, logging the raw prefix when that fails."""
        raw = response.text
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to parse JSON response: %s; raw: %r", exc, raw[:RAW_PREFIX_CHARS])
            raise ParseError(f"Malformed JSON response: {exc}", raw=raw) from exc
        if not isinstance(payload, dict):
            logger.error("Expected a JSON object; raw: %r", raw[:RAW_PREFIX_CHARS])
            raise ParseError("Expected a JSON object response", raw=raw)
        return payload

    def _fetch_for_listing(
        self, path: str, body: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """POST an authenticated listing request; failures come back as a line of text."""
        try:
            return self._decode(self._request("POST", path, body, authenticated=True)), None
        except ParseError as exc:
            return {}, f"Error parsing response. Raw response: {exc.raw[:RAW_PREFIX_CHARS]}..."
        except TransportError as exc:
            logger.error("Error calling %s: %s", path, exc)
            return {}, f"An error occurred: {exc}"

    @staticmethod
    def _render_rows(rows: List[Any], model: Type[Any], kind: str) -> List[str]:
        """One display line per record; a record that does not parse gets a line saying so."""
        lines = []
        for row in rows:
            try:
                lines.append(model.from_payload(row).render())
            except (ValidationError, AttributeError, TypeError, IndexError, KeyError) as exc:
                logger.warning("Unreadable %s record %r: %s", kind, row, exc)
                lines.append(f"Unreadable {kind} record: {str(row)[:RAW_PREFIX_CHARS]}")
        return lines

    def _session_id_from_login(self, response: httpx.Response) -> Optional[str]:
        """Find the session id in the login body, falling back to raw cookie headers."""
        try:
            result = self._decode(response)
        except ParseError:
            result = {}

        data = result.get("data")
        cookies = data.get("cookies") if isinstance(data, dict) else None
        if cookies:
            session_id = extract_session_id(str(cookies[0]))
            if session_id:
                return session_id

        for header in response.headers.get_list("set-cookie"):
            session_id = extract_session_id(header)
            if session_id:
                return session_id
        return response.cookies.get(SESSION_COOKIE)

    @staticmethod
    def _status(result: Dict[str, Any]) -> Tuple[Optional[int], str]:
        status = result.get("status")
        if not isinstance(status, dict):
            return None, ""
        return status.get("code"), status.get("message") or ""
