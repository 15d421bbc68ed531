# app.py - Cap Ledger Bot v0.2.0

APP_VERSION = "v0.2.0"

import os, base64, tempfile, logging, asyncio, psutil
import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv

# ---- Load env FIRST
load_dotenv()
BOT_ENV = os.getenv("BOT_ENV", "prod")
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
DISCORD_GUILD_ID = int(os.getenv("DISCORD_GUILD_ID", "0"))
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///capbot.db")
SLEEPER_LEAGUE_ID = os.getenv("SLEEPER_LEAGUE_ID", "")
SLEEPER_API_BASE = os.getenv("SLEEPER_API_BASE", "https://api.sleeper.app/v1")
RECONCILE_MINUTES = float(os.getenv("RECONCILE_MINUTES", "5"))
RECONCILE_TIMEOUT_SECONDS = float(os.getenv("RECONCILE_TIMEOUT_SECONDS", "120"))
PLAYER_CACHE_TTL_HOURS = float(os.getenv("PLAYER_CACHE_TTL_HOURS", "24"))
RANKING_CACHE_SECONDS = float(os.getenv("RANKING_CACHE_SECONDS", "60"))
SHEET_ID = os.getenv("RSFF_SHEET_ID", "")
SHEET_RELEASES_RANGE = os.getenv("SHEET_RELEASES_RANGE", "Releases!A1:F1")
SHEET_ADJUSTMENTS_RANGE = os.getenv("SHEET_ADJUSTMENTS_RANGE", "Adjustments!A1:J500")

# ---- Optional: base64 SA shim
b64 = os.getenv("GCP_SA_JSON_BASE64")
if b64 and not os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
    fd, path = tempfile.mkstemp(suffix=".json")
    with os.fdopen(fd, "wb") as f:
        f.write(base64.b64decode(b64))
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = path

# ---- Imports that rely on env (after shim)
from sheets_sync import pull_snapshot, adjustments_from_snapshot, append_release_rows, release_rows
from ledger import owners, store
from ledger.cache import TTLCache
from ledger.cap import cap_detail, cap_projection, cap_summary, league_cap_table
from ledger.errors import LedgerError, NotFoundError, ValidationError
from ledger.estimator import estimate_contract
from ledger.evaluator import evaluate_contract, evaluate_league, league_rankings
from ledger.ops import import_adjustments, preview_drop, release
from ledger.player_lookup import find_player, player_lookup
from ledger.reconcile import last_sync_time, run_reconciliation
from ledger.sleeper import SleeperClient
from ledger.sync import record_sync, sync_league, sync_player_stats, sync_players

# ---- Bot intents and creation (BEFORE any decorators)
intents = discord.Intents.none()
intents.messages = True
intents.message_content = True
intents.guilds = True

bot = commands.Bot(
    command_prefix="!",
    intents=intents,
    help_command=None,
    max_messages=100,
    chunk_guilds_at_startup=False,
)

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("capbot")
log.info(f"bot.intents.message_content={bot.intents.message_content} BOT_ENV={BOT_ENV} GUILD_ID={DISCORD_GUILD_ID}")

# ---- Store + provider
ENGINE = store.make_engine(DATABASE_URL)
store.init_db(ENGINE)
SessionLocal = store.make_session_factory(ENGINE)
CLIENT = SleeperClient(SLEEPER_API_BASE, players_cache=TTLCache(PLAYER_CACHE_TTL_HOURS * 3600))
RANKINGS = TTLCache(RANKING_CACHE_SECONDS)  # league id -> LeagueRanking
LEAGUE_ID = None

NO_TEAM = "❓ I couldn't map you to a team. Ask an admin to `!setowner` you, or pass a team name once."


def _with_session(fn, *args, **kw):
    with SessionLocal() as session:
        return fn(session, *args, **kw)


async def db(fn, *args, **kw):
    """Run `fn(session, ...)` in a worker thread."""
    return await asyncio.to_thread(_with_session, fn, *args, **kw)


def _league_id() -> int:
    if LEAGUE_ID is None:
        raise LedgerError("League isn't synced yet. An admin can run `!sync`.")
    return LEAGUE_ID


def _ranking(session, league_id):
    r = RANKINGS.get(league_id)
    if r is None:
        r = league_rankings(session, league_id)
        RANKINGS.set(league_id, r)
    return r


def _is_admin(member) -> bool:
    perms = getattr(member, "guild_permissions", None)
    return bool(perms and perms.administrator)


def _team(session, league_id, member, query):
    if query:
        return owners.find_team(session, league_id, query)
    return owners.resolve_user_team(session, league_id, member)


def _contract_for(session, league_id, player_query, team=None):
    player, _ = find_player(session, player_query)
    if player is None:
        raise NotFoundError("Player", player_query)
    c = store.active_contract_for_player(session, league_id, player.id)
    if c is None:
        raise ValidationError(f"{player.full_name} has no active contract.")
    if team is not None and c.team_id != team.id:
        raise ValidationError(f"{player.full_name} is not on {team.team_name}.")
    return c


async def _ensure_league():
    global LEAGUE_ID

    def find(session):
        try:
            return store.league_by_sleeper_id(session, SLEEPER_LEAGUE_ID).id
        except NotFoundError:
            return None

    if not SLEEPER_LEAGUE_ID:
        return
    LEAGUE_ID = await db(find)
    if LEAGUE_ID is None:
        LEAGUE_ID = await sync_league(SessionLocal, CLIENT, SLEEPER_LEAGUE_ID)


async def _mirror_releases(summary):
    if not SHEET_ID or not summary or not summary.total_releases:
        return
    rows = []
    for res in summary.results:
        rows += release_rows(res.releases, res.season)
    try:
        n = await asyncio.to_thread(append_release_rows, SHEET_ID, SHEET_RELEASES_RANGE, rows)
        log.info(f"📝 mirrored {n} releases to sheet")
    except Exception as e:
        log.error(f"release mirror failed: {e}")


# ---- Background reconciliation
@tasks.loop(minutes=RECONCILE_MINUTES)
async def autosync():
    summary = await run_reconciliation(SessionLocal, CLIENT, timeout=RECONCILE_TIMEOUT_SECONDS)
    if summary is None:
        return
    if summary.total_releases:
        RANKINGS.invalidate()
        await _mirror_releases(summary)
    log.info(f"⏱️ autosync → {summary.total_releases} releases, ${summary.total_dead_cap:,.2f} dead cap")

@autosync.before_loop
async def before_autosync():
    await bot.wait_until_ready()

# ---- Lifecycle
@bot.event
async def on_ready():
    await bot.change_presence(activity=discord.Game(name=f"Cap Ledger {BOT_ENV} {APP_VERSION} | !help"))
    try:
        await _ensure_league()
    except Exception as e:
        log.error(f"league bootstrap failed: {e}")

    try:
        if DISCORD_GUILD_ID:
            guild = discord.Object(id=DISCORD_GUILD_ID)
            bot.tree.copy_global_to(guild=guild)
            await bot.tree.sync(guild=guild)
            print(f"✅ Slash commands synced to guild {DISCORD_GUILD_ID}")
        else:
            synced = await bot.tree.sync()
            print(f"✅ Slash commands globally synced ({len(synced)} cmds)")
    except Exception as e:
        print(f"Slash sync failed: {e}")

    if not autosync.is_running():
        autosync.start()
    print(f"✅ Logged in as {bot.user} | league={LEAGUE_ID} ENV={BOT_ENV}")

@bot.event
async def on_command_error(ctx, error):
    if isinstance(error, commands.CommandNotFound):
        return
    if isinstance(error, commands.MissingPermissions):
        return await ctx.send(f"⛔ `!{ctx.command}` is admin-only.")
    if isinstance(error, commands.CommandOnCooldown):
        return await ctx.send(f"⏳ Slow down, try again in {error.retry_after:.0f}s.")
    original = getattr(error, "original", error)
    if isinstance(original, LedgerError):
        return await ctx.send(f"❌ {original}")
    await ctx.send(f"⚠️ {type(original).__name__}: {original}")

# ---- Status
@bot.command(name="statusmem")
async def statusmem_cmd(ctx):
    rss_mb = psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024)
    age = CLIENT.players_cache.age("nfl")
    lines = [
        f"Memory RSS: `{rss_mb:,.0f} MB`",
        f"Player directory cache: " + (f"{age / 3600:.1f}h old" if age is not None else "empty"),
        f"Ranking snapshots cached: {len(RANKINGS)}",
    ]
    await ctx.send("\n".join(lines))

HELP_LINES = [
    "**Cap Ledger Bot - Commands**",
    "",
    "__Cap & Team__",
    "`!cap [team]` - Cap used/remaining this season. Omit team to use your mapped team.",
    "`!capdetail [team]` - Top counted salaries + itemised dead money.",
    "`!projection [team]` - Five-season cap outlook.",
    "`!leaders` - Top cap space remaining (Top 5).",
    "",
    "__Players & Value__",
    "`!player <name>` - Player info: position, NFL team, contract, rostered-by, PPG.",
    "`!estimate <name>` - Market salary estimate with comparables.",
    "`!evaluate <name>` - Contract rating (ROOKIE/BUST/GOOD/STEAL/LEGENDARY) and league rank.",
    "`!rankings [n]` - Best-value contracts in the league.",
    "",
    "__Transactions__",
    "`!drop <player>` - Preview a drop: dead cap and cap room before → after. Nothing is written.",
    "`!release <player>` - Release a player on your team and charge the dead cap.",
    "",
    "__Admin__",
    "`!sync` - Refresh league, players, stats from Sleeper and reconcile rosters.",
    "`!setowner @user <team|none>` - Map a Discord user to a team (versioned).",
    "`!owners [user]` - Current owner mapping, or one user's history.",
    "`!importadj` - Import trade dead money from the league sheet.",
    "",
    "`!status` / `!statusmem` / `!version`",
]

@bot.tree.command(name="help", description="Show Cap Ledger Bot commands")
async def slash_help(interaction: discord.Interaction):
    await interaction.response.send_message("\n".join(HELP_LINES), ephemeral=True)

@bot.command(name="help")
async def help_cmd(ctx):
    lines = HELP_LINES + [
        "",
        "_Notes:_",
        "• Team defaulting uses your Discord handle mapped with `!setowner`, then your team/owner name.",
        "• Rosters reconcile with Sleeper automatically; dropped players are released with dead cap.",
        f"_Auto-sync every {RECONCILE_MINUTES:g} min_",
    ]
    await ctx.send("\n".join(lines))

@bot.command(name="version")
async def version_cmd(ctx):
    await ctx.send(f"Cap Ledger Bot {APP_VERSION} | ENV {BOT_ENV} | league {SLEEPER_LEAGUE_ID or '-'}")

@bot.command(name="status")
async def status_cmd(ctx):
    league_id = _league_id()

    def status(session):
        league = store.get_league(session, league_id)
        return league.name, league.current_season, len(store.league_teams(session, league_id)), \
            len(store.active_league_contracts(session, league_id)), last_sync_time(session, league_id)

    name, season, teams, contracts, last = await db(status)
    await ctx.send("\n".join([
        f"**{name}** · season {season}",
        f"Teams: {teams} · Active contracts: {contracts}",
        f"Last roster sync: {last:%Y-%m-%d %H:%M:%S} UTC" if last else "Last roster sync: never",
        f"Auto-sync: {'running' if autosync.is_running() else 'stopped'} (every {RECONCILE_MINUTES:g} min)",
    ]))

# ---- Cap
@bot.command(name="leaders")
@commands.cooldown(2, 10, commands.BucketType.user)
async def leaders_cmd(ctx, what: str = "cap"):
    if what.lower() not in ("cap", "capspace", "space"):
        return await ctx.send("Try `!leaders` (cap space leaders).")
    rows = await db(league_cap_table, _league_id())
    if not rows:
        return await ctx.send("No teams found.")
    header = f"**Cap Space Leaders (Top 5)** · season {rows[0]['season']}"
    lines = [header] + [
        f"• **{r['team_name']}** → Remaining `${r['cap_room']:,.0f}` (Used `${r['total_cap_used']:,.0f}` / `${r['salary_cap']:,.0f}`)"
        for r in rows[:5]
    ]
    await ctx.send("\n".join(lines))

@bot.command(name="cap")
@commands.cooldown(2, 10, commands.BucketType.user)
async def cap_cmd(ctx, *, team_name: str | None = None):
    league_id = _league_id()

    def run(session):
        team = _team(session, league_id, ctx.author, team_name)
        return cap_summary(session, team.id) if team else None

    res = await db(run)
    if res is None:
        return await ctx.send(NO_TEAM)
    lines = [
        f"**{res['team_name']}** · season {res['season']}",
        f"Cap Used: `${res['total_cap_used']:,.0f}` / `${res['salary_cap']:,.0f}`",
        f"Salaries: `${res['committed_salary']:,.0f}` ({res['contract_count']} contracts)",
    ]
    if res["dead_money_total"]:
        lines.append(
            f"Dead Money: `${res['dead_money_total']:,.0f}` "
            f"(releases `${res['dead_money_releases']:,.0f}`, trades `${res['dead_money_trades']:,.0f}`)"
        )
    lines.append(f"Remaining: `${res['cap_room']:,.0f}`")
    await ctx.send("\n".join(lines))

@bot.command(name="capdetail")
@commands.cooldown(2, 10, commands.BucketType.user)
async def capdetail_cmd(ctx, *, team_name: str | None = None):
    league_id = _league_id()

    def run(session):
        team = _team(session, league_id, ctx.author, team_name)
        return cap_detail(session, team.id, top_n=8) if team else None

    det = await db(run)
    if det is None:
        return await ctx.send(NO_TEAM)
    lines = [
        f"**{det['team_name']} - Cap Detail {det['season']}**",
        f"Used `${det['total_cap_used']:,.0f}` / `${det['salary_cap']:,.0f}` | Remaining `${det['cap_room']:,.0f}`",
        "**Top salaries counted:**",
    ]
    for p in det["top"]:
        lines.append(f"• {p['name']} {p['pos'] or ''} - `${p['salary']:,.0f}` thru {p['end_season']}")
    if det["dead_money_items"]:
        lines.append("**Dead money:**")
        for d in det["dead_money_items"]:
            tag = "cut" if d["type"] == "release" else "trade"
            who = d["player_name"] or d["reason"]
            lines.append(f"• {who} - `${d['amount']:,.0f}` ({tag})")
    lines.append(f"_Contracts counted: {det['total_counted']}_")
    await ctx.send("\n".join(lines))

@bot.command(name="projection")
@commands.cooldown(2, 10, commands.BucketType.user)
async def projection_cmd(ctx, *, team_name: str | None = None):
    league_id = _league_id()

    def run(session):
        team = _team(session, league_id, ctx.author, team_name)
        return cap_projection(session, team.id) if team else None

    res = await db(run)
    if res is None:
        return await ctx.send(NO_TEAM)
    lines = [f"**{res['team_name']} - Cap Projection**"]
    for s in res["projections"]:
        lines.append(
            f"`{s['season']}` Salaries `${s['committed_salary']:,.0f}` · Dead `${s['dead_money_total']:,.0f}` "
            f"· Room `${s['cap_room']:,.0f}` · Guaranteed `${s['guaranteed_salary']:,.0f}`"
        )
    await ctx.send("\n".join(lines))

# ---- Players & value
@bot.command(name="player")
async def player_cmd(ctx, *, name: str):
    res = await db(player_lookup, _league_id(), name)
    if not res:
        return await ctx.send(f"❌ No match for `{name}`. Try more letters (e.g., `!player patrick maho`).")

    status = "Free Agent" if res["status"] == "FA" else f"Rostered by **{res['rostered_by']}**"
    lines = [
        f"**{res['name']}** - {res.get('pos') or '?'} {res.get('nfl') or ''}",
        f"Status: {status}",
    ]
    if res["contract_id"]:
        lines.append(f"Contract: `${res['salary']:,.0f}` ({res['years']})")
    if res["ppg"] is not None:
        lines.append(f"Last season: `{res['ppg']:.1f}` PPG in {res['games_played']} games")
    lines.append(f"Sleeper ID: `{res['sleeper_player_id']}`")
    lines.append(f"_Search match: {res.get('match_score', 0)}/100_")
    await ctx.send("\n".join(lines))

@bot.command(name="estimate")
@commands.cooldown(2, 10, commands.BucketType.user)
async def estimate_cmd(ctx, *, name: str):
    league_id = _league_id()

    def run(session):
        player, _ = find_player(session, name)
        if player is None:
            raise NotFoundError("Player", name)
        current = store.active_contract_for_player(session, league_id, player.id)
        prior = float(current.salary) if current else None
        return player, estimate_contract(session, league_id, player.id, player.position, player.age, prior)

    player, est = await db(run)
    lines = [
        f"**{player.full_name}** ({player.position}) - Estimate `${est.estimated_salary}`",
        f"Range: `${est.salary_range['min']}`-`${est.salary_range['max']}` · Confidence: {est.confidence}",
    ]
    if est.ppg is not None:
        lines.append(f"PPG `{est.ppg:.1f}` over {est.games_played} games")
    for c in est.comparable_players[:3]:
        lines.append(f"• {c.full_name} - `${c.salary:,.0f}` at `{c.ppg:.1f}` PPG")
    lines.append(f"_{est.reasoning}_")
    await ctx.send("\n".join(lines))

@bot.command(name="evaluate")
@commands.cooldown(2, 10, commands.BucketType.user)
async def evaluate_cmd(ctx, *, name: str):
    league_id = _league_id()

    def run(session):
        c = _contract_for(session, league_id, name)
        return c.player.full_name, evaluate_contract(session, c.id, _ranking(session, league_id))

    player_name, ev = await db(run)
    lines = [f"**{player_name}** - **{ev.rating}**"]
    if ev.rating != "ROOKIE":
        lines += [
            f"Salary `${ev.actual_salary:,.0f}` vs market `${ev.estimated_salary}` (value score {ev.value_score:+.0f})",
            f"League rank #{ev.league_rank} of {ev.total_contracts}"
            + (f" · position PPG rank #{ev.position_rank}" if ev.position_rank else ""),
        ]
    lines.append(f"_{ev.reasoning}_")
    await ctx.send("\n".join(lines))

@bot.command(name="rankings")
@commands.cooldown(1, 15, commands.BucketType.user)
async def rankings_cmd(ctx, n: int = 10):
    league_id = _league_id()
    n = max(1, min(n, 25))

    def run(session):
        evals = evaluate_league(session, league_id, _ranking(session, league_id))
        names = {c.id: p.full_name for c, p in store.active_league_contracts(session, league_id)}
        return [(names.get(e.contract_id, "?"), e) for e in evals if e.league_rank is not None][:n]

    rows = await db(run)
    if not rows:
        return await ctx.send("No rated contracts yet (stats not synced?).")
    lines = [f"**Best Value Contracts (Top {len(rows)})**"]
    for name, e in rows:
        lines.append(
            f"`#{e.league_rank}` {name} - `${e.actual_salary:,.0f}` vs `${e.estimated_salary}` · {e.rating} ({e.value_score:+.0f})"
        )
    await ctx.send("\n".join(lines))

# ---- Transactions
@bot.command(name="drop")
async def drop_cmd(ctx, *, player: str):
    league_id = _league_id()

    def run(session):
        team = owners.resolve_user_team(session, league_id, ctx.author)
        if team is None:
            return None
        c = _contract_for(session, league_id, player, team)
        return preview_drop(session, c.id)

    res = await db(run)
    if res is None:
        return await ctx.send(NO_TEAM)
    lines = [
        f"**Drop {res['player']}** from **{res['team']}** (preview)",
        f"Dead Cap: `${res['dead_cap']:,.0f}` ({res['dead_cap_pct']:.0f}% of `${res['salary']:,.0f}`, year {res['years_into_contract'] + 1} of {res['years_total']})",
        f"Cap Savings: `${res['cap_savings']:,.0f}`",
        "",
        f"**Cap Remaining {res['season']}:** `${res['cap_room_before']:,.0f}` → `${res['cap_room_after']:,.0f}`  _(Δ `${-res['used_delta']:,.0f}`)_",
        "_Use `!release` to make it official._",
    ]
    await ctx.send("\n".join(lines))

@bot.command(name="release")
async def release_cmd(ctx, *, player: str):
    league_id = _league_id()
    admin = _is_admin(ctx.author)

    def find(session):
        team = None if admin else owners.resolve_user_team(session, league_id, ctx.author)
        if team is None and not admin:
            return None
        return _contract_for(session, league_id, player, team).id

    contract_id = await db(find)
    if contract_id is None:
        return await ctx.send(NO_TEAM)
    outcome = await asyncio.to_thread(release, SessionLocal, contract_id)
    RANKINGS.invalidate()
    log.info(f"🔴 {ctx.author} released {outcome.player_name} (dead cap ${outcome.dead_cap:,.2f})")
    await ctx.send(f"🔴 Released **{outcome.player_name}**. Dead cap `${outcome.dead_cap:,.0f}` charged to {outcome.season}.")

# ---- Admin
@bot.command(name="sync")
@commands.has_guild_permissions(administrator=True)
async def sync_cmd(ctx):
    global LEAGUE_ID
    if not SLEEPER_LEAGUE_ID:
        return await ctx.send("❌ SLEEPER_LEAGUE_ID is not configured.")
    await ctx.send("🔄 Syncing from Sleeper…")
    LEAGUE_ID = await sync_league(SessionLocal, CLIENT, SLEEPER_LEAGUE_ID)
    n_players = await sync_players(SessionLocal, CLIENT)
    season = await db(lambda s: store.stats_season(store.get_league(s, LEAGUE_ID)))
    stats = await sync_player_stats(SessionLocal, CLIENT, season, LEAGUE_ID)
    await asyncio.to_thread(record_sync, SessionLocal, LEAGUE_ID, "full", n_players + stats["synced"])
    summary = await run_reconciliation(SessionLocal, CLIENT, [LEAGUE_ID], RECONCILE_TIMEOUT_SECONDS)
    RANKINGS.invalidate()
    await _mirror_releases(summary)

    lines = [
        "🔄 Synced.",
        f"Players: {n_players} · {season} stats: {stats['synced']} ({stats['scoring_type']})",
    ]
    if summary is None:
        lines.append("⚠️ Roster reconciliation failed or timed out; it will retry on the next tick.")
    else:
        lines.append(f"Roster drops released: {summary.total_releases} (dead cap `${summary.total_dead_cap:,.0f}`)")
        for res in summary.results:
            for r in res.releases:
                lines.append(f"• {r.player_name} ({r.team_name}) `${r.dead_cap:,.0f}`")
            for err in res.errors:
                lines.append(f"⚠️ {err}")
    await ctx.send("\n".join(lines))

@bot.command(name="setowner")
@commands.has_guild_permissions(administrator=True)
async def setowner_cmd(ctx, member: discord.Member, *, team_name: str):
    league_id = _league_id()

    def run(session):
        if team_name.strip().lower() == "none":
            return None
        team = owners.find_team(session, league_id, team_name)
        if team is None:
            raise NotFoundError("Team", team_name)
        return team

    team = await db(run)
    row = await asyncio.to_thread(
        owners.set_owner, SessionLocal, league_id, member.name, team.id if team else None, str(ctx.author)
    )
    target = f"**{team.team_name}**" if team else "no team"
    await ctx.send(f"✅ {member.name} → {target} (v{row.version})")

@bot.command(name="owners")
@commands.has_guild_permissions(administrator=True)
async def owners_cmd(ctx, *, user: str | None = None):
    league_id = _league_id()
    if user:
        hist = await db(owners.mapping_history, league_id, user)
        if not hist:
            return await ctx.send(f"No mapping history for `{user}`.")
        lines = [f"**Owner history: {user}**"] + [
            f"v{h['version']} → {h['team_name'] or 'none'} by {h['changed_by']} @ {h['changed_at']:%Y-%m-%d %H:%M}"
            for h in hist
        ]
        return await ctx.send("\n".join(lines))

    def run(session):
        mapping = owners.current_mapping(session, league_id)
        return sorted((u, store.get_team(session, t).team_name) for u, t in mapping.items())

    rows = await db(run)
    if not rows:
        return await ctx.send("No owners mapped yet. Use `!setowner @user <team>`.")
    await ctx.send("\n".join(["**Owner mapping**"] + [f"• {u} → {t}" for u, t in rows]))

@bot.command(name="importadj")
@commands.has_guild_permissions(administrator=True)
async def importadj_cmd(ctx):
    if not SHEET_ID:
        return await ctx.send("❌ RSFF_SHEET_ID is not configured.")
    league_id = _league_id()
    snap = await asyncio.to_thread(pull_snapshot, SHEET_ID, [SHEET_ADJUSTMENTS_RANGE])
    tab = SHEET_ADJUSTMENTS_RANGE.split("!")[0].strip("'")
    rows = adjustments_from_snapshot(snap, tab)
    res = await asyncio.to_thread(import_adjustments, SessionLocal, league_id, rows)
    lines = [
        f"📥 Imported {res['imported']} adjustments, skipped {res['skipped']} already present.",
        f"_Snapshot `{snap['hash']}` @ {snap['ts']}_",
    ]
    if res["unknown_teams"]:
        lines.append("⚠️ Unknown teams: " + ", ".join(sorted(set(res["unknown_teams"]))))
    await ctx.send("\n".join(lines))

if __name__ == "__main__":
    if not DISCORD_TOKEN:
        raise SystemExit("DISCORD_TOKEN missing")
    bot.run(DISCORD_TOKEN)
