"""
Google Sheets backend.

- SheetsClient: thin async REST client for the Sheets v4 `values` API
  (aiohttp + a google-auth service-account token).
- SheetsManager: the three things the bot needs from the spreadsheet:
  append a finished game, read the ranking tab, read/write the rank lookup
  cell. Plus the teasing templates for /roast.
"""
from __future__ import annotations

import asyncio
import datetime
import json
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import aiohttp
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

import config
from app.errors import ConfigurationError, PersistenceError
from logger import setup_logger
from storage.models import (
    SCORE_HEADERS,
    RankedPlayer,
    ScoreEntry,
    TeaseTemplate,
    build_game_record,
    record_to_row,
)


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class SheetsError(PersistenceError):
    pass


def a1(sheet_title: str, cells: str = "") -> str:
    """'My Tab'!A1:B2. Titles are always quoted since they may contain spaces."""
    escaped = sheet_title.replace("'", "''")
    return f"'{escaped}'!{cells}" if cells else f"'{escaped}'"


def load_service_account(raw_json: Optional[str], scopes: Sequence[str]) -> service_account.Credentials:
    if not raw_json:
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is not set")
    try:
        info = json.loads(raw_json)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON: {e}") from e
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=list(scopes))
    except (ValueError, KeyError) as e:
        raise ConfigurationError(f"Invalid service account JSON: {e}") from e


class SheetsClient:
    def __init__(
        self,
        spreadsheet_id: str,
        credentials: service_account.Credentials,
        base_url: str = "https://sheets.googleapis.com/v4/spreadsheets",
        timeout_total_seconds: float = 10.0,
        timeout_connect_seconds: float = 3.0,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.credentials = credentials
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_total_seconds = float(timeout_total_seconds)
        self.timeout_connect_seconds = float(timeout_connect_seconds)
        self._token_lock = asyncio.Lock()

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.timeout_total_seconds,
            connect=self.timeout_connect_seconds,
        )

    async def _access_token(self) -> str:
        async with self._token_lock:
            if not self.credentials.valid:
                # google-auth refresh is blocking (requests); keep it off the loop.
                try:
                    await asyncio.to_thread(self.credentials.refresh, GoogleAuthRequest())
                except Exception as e:
                    raise SheetsError(f"Google auth failed: {e}") from e
            return self.credentials.token

    async def _request_json(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[dict] = None,
    ) -> Dict[str, Any]:
        token = await self._access_token()
        url = f"{self.base_url}/{self.spreadsheet_id}{path}"
        headers = {"Authorization": f"Bearer {token}"}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as session:
                async with session.request(method, url, params=params, json=json_body, headers=headers) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        try:
                            detail = await resp.text()
                        except Exception:
                            detail = ""
                        raise SheetsError(f"Sheets HTTP {resp.status} {method} {path}: {detail[:300]}")
                    return await resp.json()
        except asyncio.TimeoutError as e:
            raise SheetsError(f"Sheets timeout: {method} {path}") from e
        except aiohttp.ClientError as e:
            raise SheetsError(f"Sheets connection error: {method} {path}") from e

    async def get_title(self) -> str:
        data = await self._request_json("GET", "", params={"fields": "properties.title"})
        return str((data.get("properties") or {}).get("title") or "")

    async def get_values(self, range_a1: str) -> List[List[Any]]:
        data = await self._request_json("GET", f"/values/{quote(range_a1, safe='')}")
        return [list(r) for r in (data.get("values") or [])]

    async def update_values(self, range_a1: str, rows: List[List[Any]]) -> None:
        await self._request_json(
            "PUT",
            f"/values/{quote(range_a1, safe='')}",
            params={"valueInputOption": "USER_ENTERED"},
            json_body={"range": range_a1, "values": rows},
        )

    async def append_values(self, range_a1: str, rows: List[List[Any]]) -> Dict[str, Any]:
        return await self._request_json(
            "POST",
            f"/values/{quote(range_a1, safe='')}:append",
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json_body={"values": rows},
        )


class SheetsManager:
    def __init__(
        self,
        client: SheetsClient,
        scores_sheet: str = "Endgames_scores_FROM BOT",
        ranking_sheet: str = "Ranking",
        teasing_sheet: str = "Teasing",
        lookup_input_cell: str = "",
        lookup_result_range: str = "",
    ) -> None:
        self.client = client
        self.scores_sheet = scores_sheet
        self.ranking_sheet = ranking_sheet
        self.teasing_sheet = teasing_sheet
        self.lookup_input_cell = lookup_input_cell
        self.lookup_result_range = lookup_result_range
        # The lookup cell is shared spreadsheet state: one writer at a time.
        self._lookup_lock = asyncio.Lock()

    @classmethod
    def from_config(cls) -> "SheetsManager":
        """
        Raises ConfigurationError when credentials / ids are missing. Presence
        is logged, values never are.
        """
        sheet_id = getattr(config, "SHEET_ID", None)
        raw_json = getattr(config, "GOOGLE_SERVICE_ACCOUNT_JSON", None)
        logger.debug(
            f"[Sheets] SHEET_ID={'Found' if sheet_id else 'Missing'} "
            f"GOOGLE_SERVICE_ACCOUNT_JSON={'Found' if raw_json else 'Missing'}"
        )
        if not sheet_id:
            raise ConfigurationError("SHEET_ID is not set")

        creds = load_service_account(raw_json, getattr(config, "GOOGLE_SHEETS_SCOPES", []))
        expected_email = getattr(config, "GOOGLE_SERVICE_EMAIL", None)
        if expected_email and creds.service_account_email != expected_email:
            logger.warning("[Sheets] GOOGLE_SERVICE_EMAIL does not match the service account JSON")

        client = SheetsClient(
            spreadsheet_id=sheet_id,
            credentials=creds,
            base_url=getattr(config, "GOOGLE_SHEETS_BASE_URL", "https://sheets.googleapis.com/v4/spreadsheets"),
            timeout_total_seconds=float(getattr(config, "SHEETS_HTTP_TIMEOUT_TOTAL_SECONDS", 10.0)),
            timeout_connect_seconds=float(getattr(config, "SHEETS_HTTP_TIMEOUT_CONNECT_SECONDS", 3.0)),
        )
        return cls(
            client,
            scores_sheet=getattr(config, "SCORES_SHEET_TITLE", "Endgames_scores_FROM BOT"),
            ranking_sheet=getattr(config, "RANKING_SHEET_TITLE", "Ranking"),
            teasing_sheet=getattr(config, "TEASING_SHEET_TITLE", "Teasing"),
            lookup_input_cell=getattr(config, "RANK_LOOKUP_INPUT_CELL", ""),
            lookup_result_range=getattr(config, "RANK_LOOKUP_RESULT_RANGE", ""),
        )

    # ---------------------------
    # Result persistence
    # ---------------------------
    async def add_game_scores(
        self,
        scores: Sequence[ScoreEntry],
        session_id: str,
        logged_by: str,
        today: Optional[datetime.date] = None,
    ) -> Dict[str, Any]:
        """
        Append one row for a finished game. Columns follow the tab's header
        row so the sheet owner can reorder them; an empty tab falls back to
        the default header order.
        """
        record = build_game_record(scores, game_id=session_id, logged_by=logged_by, today=today)

        header_rows = await self.client.get_values(a1(self.scores_sheet, "1:1"))
        headers = [str(h).strip() for h in (header_rows[0] if header_rows else [])]
        if not headers:
            headers = list(SCORE_HEADERS)
        missing = [k for k in record if k not in headers]
        if missing:
            logger.warning(f"[Sheets] score tab has no column for: {', '.join(missing)}")

        logger.debug(f"[Sheets] game row: {record}")
        await self.client.append_values(a1(self.scores_sheet, "A1"), [record_to_row(record, headers)])
        logger.info(f"[Sheets] game {session_id} recorded ({len(scores)} players)")
        return record

    # ---------------------------
    # Ranking reads
    # ---------------------------
    async def get_ladder_data(self) -> List[RankedPlayer]:
        rows = await self.client.get_values(a1(self.ranking_sheet, "A:D"))
        players = [p for p in (RankedPlayer.from_cells(r) for r in rows) if p is not None]
        players.sort(key=lambda p: p.rank)
        return players

    async def get_player_rank(self, player: str) -> Optional[RankedPlayer]:
        name = (player or "").strip()
        if not name:
            return None

        if self.lookup_input_cell and self.lookup_result_range:
            async with self._lookup_lock:
                await self.client.update_values(self.lookup_input_cell, [[name]])
                rows = await self.client.get_values(self.lookup_result_range)
            found = RankedPlayer.from_cells(rows[0]) if rows else None
            return found

        wanted = name.lower()
        for p in await self.get_ladder_data():
            if p.player.lower() == wanted:
                return p
        return None

    # ---------------------------
    # Teasing templates
    # ---------------------------
    async def get_teasing_messages(self) -> List[TeaseTemplate]:
        rows = await self.client.get_values(a1(self.teasing_sheet, "A:A"))
        out: List[TeaseTemplate] = []
        for r in rows[1:]:  # header: Template
            text = str(r[0]).strip() if r else ""
            if text:
                out.append(TeaseTemplate(template=text))
        return out
