# sheets_sync.py
import os
import re
import hashlib
import datetime
from google.oauth2 import service_account
from googleapiclient.discovery import build

# read the legacy adjustments tab, append auto-release rows
_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
_SERVICE = None  # global singleton client

_SEASON_COL = re.compile(r"^\s*(\d{4})\s*$")


def _get_service():
    """Return a cached Google Sheets service client."""
    global _SERVICE
    if _SERVICE is None:
        # Use service account JSON (either from file or temp file set in app.py shim)
        creds = service_account.Credentials.from_service_account_file(
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"],
            scopes=_SCOPES
        )
        _SERVICE = build("sheets", "v4", credentials=creds, cache_discovery=False)
    return _SERVICE


def pull_snapshot(sheet_id: str, ranges: list[str]):
    """
    Fetch specified ranges from a Google Sheet and return a structured snapshot dict.
    Example ranges: ["Adjustments!A1:H500"]
    """
    service = _get_service()
    result = service.spreadsheets().values().batchGet(
        spreadsheetId=sheet_id,
        ranges=ranges,
        majorDimension="ROWS"
    ).execute()

    tabs = {}
    for resp in result.get("valueRanges", []):
        rng = resp.get("range", "")
        values = resp.get("values", [])
        if not values:
            continue

        # Extract sheet name before "!", quotes dropped ('Dead Money'!A1)
        tab_name = rng.split("!")[0].strip("'")
        header, *rows = values
        # Normalize into list of dicts
        dicts = []
        for r in rows:
            d = {header[i]: (r[i] if i < len(r) else "") for i in range(len(header))}
            dicts.append(d)
        tabs[tab_name] = dicts

    # Snapshot metadata
    h = hashlib.md5(str(tabs).encode()).hexdigest()[:8]
    ts = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    return {"hash": h, "ts": ts, "tabs": tabs}


def _money(v) -> float:
    s = str(v or "").strip().replace("$", "").replace(",", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    try:
        return float(s) if s else 0.0
    except ValueError:
        return 0.0


def _first(row: dict, *keys: str) -> str:
    low = {str(k).strip().lower(): v for k, v in row.items()}
    for k in keys:
        v = low.get(k)
        if v not in (None, ""):
            return str(v).strip()
    return ""


def adjustments_from_snapshot(snapshot: dict, tab: str) -> list[dict]:
    """
    Rows of a dead-money tab -> adjustment dicts.
    Expected columns: Team, Player (optional), Description (optional), one column per season year.
      {"team": "Gridiron Gang", "player_name": "X", "description": "...", "amounts": {2026: 12.0, 2027: 6.0}}
    Rows without a team or with every season blank/zero are skipped.
    """
    rows = snapshot.get("tabs", {}).get(tab, [])
    out = []
    for r in rows:
        team = _first(r, "team", "team_name", "team name")
        if not team:
            continue
        amounts = {}
        for k, v in r.items():
            m = _SEASON_COL.match(str(k))
            if m:
                amt = _money(v)
                if amt:
                    amounts[int(m.group(1))] = amt
        if not amounts:
            continue
        player = _first(r, "player", "player_name", "player name")
        out.append({
            "team": team,
            "player_name": player or None,
            "description": _first(r, "description", "notes", "reason") or (f"Trade dead money: {player}" if player else "Trade dead money"),
            "trade_id": _first(r, "trade_id", "trade id") or None,
            "amounts": amounts,
        })
    return out


def release_rows(releases, season: int, when: str | None = None) -> list[list]:
    """Reconciliation releases -> sheet rows: When, Season, Team, Player, Dead Cap, Reason."""
    when = when or datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return [
        [when, season, r.team_name, r.player_name, round(float(r.dead_cap), 2), "dropped"]
        for r in releases
    ]


def append_release_rows(sheet_id: str, rng: str, rows: list[list]) -> int:
    """Append rows under the last filled row of `rng`. Returns how many were written."""
    if not rows:
        return 0
    service = _get_service()
    service.spreadsheets().values().append(
        spreadsheetId=sheet_id,
        range=rng,
        valueInputOption="USER_ENTERED",
        insertDataOption="INSERT_ROWS",
        body={"values": rows},
    ).execute()
    return len(rows)
