"""Application key registry and the transaction check that relies on it."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Any

from .config import MAX_BLOCK_COLUMNS, BlockDimensions

BLOCK_CHUNK_SIZE = 32
NORMAL_DISPATCH_PERCENT = 90
SUBMIT_DATA_CALL = "DataAvailability.submit_data"

_U32_MAX = (1 << 32) - 1


class _RootOrigin:
    """Marker for calls dispatched with root privileges."""

    def __repr__(self) -> str:
        return "ROOT"


ROOT = _RootOrigin()


@dataclass(frozen=True)
class AppKeyInfo:
    """Owner of an application key and the application id it maps to."""

    owner: Hashable
    id: int


class RegistryError(Exception):
    """A registry call failed; ``reason`` names the failure."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or reason)
        self.reason = reason


class BadOriginError(RegistryError):
    """The call was dispatched from an origin that may not make it."""

    def __init__(self, message: str) -> None:
        super().__init__("BadOrigin", message)


class InvalidTransactionError(Exception):
    """A transaction is rejected by validation; ``reason`` names the check."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _ensure_signed(origin: Any) -> Hashable:
    if origin is ROOT or origin is None:
        raise BadOriginError("a signed origin is required")
    return origin


def _ensure_root(origin: Any) -> None:
    if origin is not ROOT:
        raise BadOriginError("the root origin is required")


class DataAvailability:
    """In-memory registry of application keys and block length proposals."""

    def __init__(
        self,
        app_keys: Iterable[tuple[bytes, AppKeyInfo]] = (),
        *,
        max_app_key_length: int = 32,
        max_app_data_length: int = 16 * 1024,
        min_block_rows: int = 32,
        max_block_rows: int = 1024,
        min_block_cols: int = 32,
        max_block_cols: int = MAX_BLOCK_COLUMNS,
    ) -> None:
        self.max_app_key_length = max_app_key_length
        self.max_app_data_length = max_app_data_length
        self.min_block_rows = min_block_rows
        self.max_block_rows = max_block_rows
        self.min_block_cols = min_block_cols
        self.max_block_cols = max_block_cols

        self.events: list[dict[str, Any]] = []
        self.block_length: BlockDimensions | None = None
        self._app_keys: dict[bytes, AppKeyInfo] = {}
        self._next_app_id = 0
        self._last_block_len_id = 0

        entries = [(bytes(key), info) for key, info in app_keys]
        ids = {info.id for _, info in entries}
        if len(ids) != len(entries):
            raise ValueError("genesis contains duplicated application ID")
        for key, info in entries:
            self._app_keys[self._bounded_key(key)] = info
        last_id = max(ids, default=0) + 1
        if last_id > _U32_MAX:
            raise ValueError("genesis overflows the last application id")
        self._next_app_id = last_id

    def _bounded_key(self, key: bytes) -> bytes:
        key = bytes(key)
        if len(key) > self.max_app_key_length:
            raise ValueError(
                f"application key of {len(key)} bytes exceeds {self.max_app_key_length}"
            )
        return key

    def application_key(self, key: bytes) -> AppKeyInfo | None:
        """Information registered for ``key``, or None."""
        return self._app_keys.get(bytes(key))

    def peek_next_application_id(self) -> int:
        """The id the next created application key will receive."""
        return self._next_app_id

    def next_application_id(self) -> int:
        """Return the next available application id and advance it."""
        current = self._next_app_id
        if current >= _U32_MAX:
            raise RegistryError("LastAppIdOverflowed")
        self._next_app_id = current + 1
        return current

    def next_block_len_proposal_id(self) -> int:
        """Return the current block length proposal id and advance it."""
        current = self._last_block_len_id
        if current >= _U32_MAX:
            raise RegistryError("LastBlockLenProposalIdOverflowed")
        self._last_block_len_id = current + 1
        return current

    def create_application_key(self, origin: Any, key: bytes) -> int:
        """Register ``key`` for the signing account; return the new application id."""
        owner = _ensure_signed(origin)
        key = self._bounded_key(key)
        if key in self._app_keys:
            raise RegistryError("AppKeyAlreadyExists")
        app_id = self.next_application_id()
        self._app_keys[key] = AppKeyInfo(owner=owner, id=app_id)
        self.events.append(
            {"event": "ApplicationKeyCreated", "key": key, "owner": owner, "id": app_id}
        )
        return app_id

    def submit_data(self, origin: Any, data: bytes) -> None:
        """Accept opaque data from a signed account and record the submission."""
        who = _ensure_signed(origin)
        data = bytes(data)
        if len(data) > self.max_app_data_length:
            raise ValueError(
                f"data of {len(data)} bytes exceeds {self.max_app_data_length}"
            )
        self.events.append({"event": "DataSubmitted", "who": who, "data": data})

    def submit_block_length_proposal(self, origin: Any, rows: int, cols: int) -> BlockDimensions:
        """Set new block dimensions; only root may do this."""
        _ensure_root(origin)
        if rows > self.max_block_rows or cols > self.max_block_cols:
            raise RegistryError("BlockDimensionsOutOfBounds")
        if rows < self.min_block_rows or cols < self.min_block_cols:
            raise RegistryError("BlockDimensionsTooSmall")
        self.next_block_len_proposal_id()
        self.block_length = BlockDimensions(rows=rows, cols=cols, chunk_size=BLOCK_CHUNK_SIZE)
        self.events.append({"event": "BlockLengthProposalSubmitted", "rows": rows, "cols": cols})
        return self.block_length


@dataclass(frozen=True)
class CheckAppId:
    """Transaction check: only registered application ids may submit data."""

    app_id: int

    IDENTIFIER = "CheckAppId"

    def __str__(self) -> str:
        return f"CheckAppId: {self.app_id}"

    def validate(self, pallet: DataAvailability, call: str) -> int:
        """Validate ``call`` against the registry; return the accepted app id.

        Only ``DataAvailability.submit_data`` may use a non-zero, registered
        application id; every other call must use id 0.
        """
        if call == SUBMIT_DATA_CALL:
            if self.app_id >= pallet.peek_next_application_id():
                raise InvalidTransactionError("InvalidAppId")
        elif self.app_id != 0:
            raise InvalidTransactionError("ForbiddenAppId")
        return self.app_id