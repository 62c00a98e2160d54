"""
Main CLI entry point for the LumberTier Golf client.
"""

import argparse
import logging
import signal
import sys
import time
from pathlib import Path

from . import config
from .api_client import LtgApiClient
from .cache import ReadThroughResolver, TTLCache
from .contest.leaderboard import export_to_csv, format_optional, format_picks, format_score
from .contest.leaderboard_poller import LeaderboardPoller, LeaderboardView
from .contest.lineup_draft import (
    DraftStatus,
    DraftStore,
    LineupDraftMachine,
    SessionCredentialStore,
)
from .contest.local_store import LocalStore
from .contest.player_matcher import match_player
from .contest.research import filter_player_form, format_stat
from .contest.tournament_service import TournamentDataService
from .errors import LumberTierError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='LumberTier Golf: tournament research, live leaderboard and lineups',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Browse tournaments
  python -m lumbertier.main tournaments

  # Tier A players sorted by last-8 average
  python -m lumbertier.main research 42 --tier A

  # Follow the live leaderboard, refreshing every 30 seconds
  python -m lumbertier.main leaderboard 42 --watch --interval 30

  # Build and submit a lineup
  python -m lumbertier.main lineup 42 select A "Scottie Scheffler"
  python -m lumbertier.main lineup 42 submit

  # Serve the cached read API
  python -m lumbertier.main serve --port 8000
        """
    )

    parser.add_argument('--api-url', type=str, default=config.API_BASE_URL,
                        help=f'Backend URL (default: {config.API_BASE_URL})')
    parser.add_argument('--state-dir', type=str, default=config.LOCAL_STATE_DIR,
                        help=f'Local state directory (default: {config.LOCAL_STATE_DIR})')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    # tournaments
    subparsers.add_parser('tournaments', help='List tournaments')

    # research
    research = subparsers.add_parser('research', help='Show player form for a tournament')
    research.add_argument('tournament_id')
    research.add_argument('--tier', default=None, help='Tier filter (A-D)')
    research.add_argument('--query', default=None, help='Player name contains')
    research.add_argument('--sort', default='last8_avg', choices=config.RESEARCH_SORT_KEYS)
    research.add_argument('--direction', default='desc', choices=config.SORT_DIRECTIONS)

    # leaderboard
    leaderboard = subparsers.add_parser('leaderboard', help='Show the fantasy leaderboard')
    leaderboard.add_argument('tournament_id')
    leaderboard.add_argument('--sort', default='rank', choices=config.LEADERBOARD_SORT_KEYS)
    leaderboard.add_argument('--direction', default='asc', choices=config.SORT_DIRECTIONS)
    leaderboard.add_argument('--watch', action='store_true', help='Keep refreshing until Ctrl+C')
    leaderboard.add_argument('--interval', type=int, default=config.LEADERBOARD_POLL_INTERVAL,
                             help='Seconds between refreshes in watch mode')
    leaderboard.add_argument('--duration', type=int, default=None,
                             help='Stop watching after N minutes')
    leaderboard.add_argument('--csv', type=str, default=None, help='Export the ranked view to CSV')

    # lineup
    lineup = subparsers.add_parser('lineup', help='Build and submit a lineup')
    lineup.add_argument('tournament_id')
    lineup_actions = lineup.add_subparsers(dest='action', required=True)
    lineup_actions.add_parser('show', help='Show the current draft')
    select = lineup_actions.add_parser('select', help='Pick a player for a tier')
    select.add_argument('tier')
    select.add_argument('player', help='Player id or name')
    unselect = lineup_actions.add_parser('unselect', help='Remove the pick for a tier')
    unselect.add_argument('tier')
    lineup_actions.add_parser('clear', help='Discard the draft')
    lineup_actions.add_parser('submit', help='Submit the complete lineup')

    # session
    session = subparsers.add_parser('session', help='Manage the stored bearer token')
    session_actions = session.add_subparsers(dest='action', required=True)
    session_set = session_actions.add_parser('set', help='Store a token')
    session_set.add_argument('token')
    session_actions.add_parser('clear', help='Forget the token')

    # serve
    serve = subparsers.add_parser('serve', help='Run the cached read API')
    serve.add_argument('--host', default=config.API_HOST)
    serve.add_argument('--port', type=int, default=config.API_PORT)

    return parser.parse_args(argv)


def build_service(args) -> TournamentDataService:
    client = LtgApiClient(base_url=args.api_url)
    resolver = ReadThroughResolver(TTLCache(default_ttl=config.DEFAULT_CACHE_TTL))
    return TournamentDataService(client, resolver)


def print_leaderboard(view: LeaderboardView, tournament_id: str) -> None:
    """Print a ranked leaderboard table with its freshness banner."""
    updated = view.updated_at.isoformat() if view.updated_at else 'never'
    print(f"\nLeaderboard: tournament {tournament_id} (updated {updated})")
    if view.error:
        prefix = 'Showing last known results. ' if view.has_data else ''
        print(f"!! {prefix}Refresh failed: {view.error}")

    print(f"{'Rank':>5}  {'User':<24} {'Total':>6}  {'TB':>5}  {'Entry':<12} Picks")
    for entry in view.entries:
        print(
            f"{format_optional(entry.rank):>5}  {entry.user.display_name():<24.24} "
            f"{format_score(entry.total):>6}  {format_optional(entry.tiebreaker):>5}  "
            f"{entry.entry_id:<12.12} {format_picks(entry.picks)}"
        )
    if not view.entries and not view.error:
        print("No entries yet.")


def format_date(value) -> str:
    """Date part of an ISO timestamp, 'TBA' when unknown."""
    if not value:
        return 'TBA'
    return str(value)[:10]


def run_tournaments(args, service: TournamentDataService) -> None:
    tournaments = service.list_tournaments()
    if not tournaments:
        print("No tournaments yet.")
        return

    print(f"\n{'ID':<10} {'Tour':<6} {'Status':<12} {'Dates':<24} Name")
    for t in tournaments:
        start = t.get('start_date') or t.get('startDate')
        end = t.get('end_date') or t.get('endDate')
        location = ', '.join(str(t[k]) for k in ('course', 'city', 'country') if t.get(k))
        print(
            f"{str(t.get('id', t.get('slug', ''))):<10.10} {t.get('tour') or 'PGA':<6} "
            f"{t.get('status') or '':<12} {format_date(start) + ' - ' + format_date(end):<24} "
            f"{t.get('name', '')}"
        )
        if location:
            print(f"{'':<55}{location}")


def run_research(args, service: TournamentDataService) -> None:
    snapshot = service.get_research(args.tournament_id)
    df = filter_player_form(
        snapshot,
        query=args.query,
        tier=args.tier,
        sort_key=args.sort,
        direction=args.direction
    )

    name = snapshot.meta.get('name', args.tournament_id)
    print(f"\nTournament research: {name} ({snapshot.meta.get('tour', '')})")
    if snapshot.field_strength.get('metric') is not None:
        print(f"Field strength: {snapshot.field_strength['metric']}")

    print(f"{'Tier':<5} {'Name':<28} {'L8 Avg':>7} {'L4 Trend':>9} {'Cuts':>5} {'T10':>4} {'T25':>4}")
    for row in df.to_dict('records'):
        print(
            f"{row['tier']:<5} {row['name']:<28.28} {format_stat(row['last8_avg']):>7} "
            f"{format_stat(row['last4_trend']):>9} {format_stat(row['cuts_made']):>5} "
            f"{format_stat(row['top10s']):>4} {format_stat(row['top25s']):>4}"
        )
    if df.empty:
        print("No players match the current filters.")


def run_leaderboard(args, service: TournamentDataService) -> None:
    client = service.client

    if not args.watch:
        poller = LeaderboardPoller(args.tournament_id, client.fetch_leaderboard)
        poller.refresh_now()
        view = poller.view(args.sort, args.direction)
        print_leaderboard(view, args.tournament_id)
        if args.csv and view.entries:
            export_to_csv(view.entries, Path(args.csv))
        if not view.has_data:
            sys.exit(1)
        return

    def on_update(_snapshot):
        print_leaderboard(poller.view(args.sort, args.direction), args.tournament_id)

    poller = LeaderboardPoller(
        args.tournament_id,
        client.fetch_leaderboard,
        interval=args.interval,
        on_update=on_update
    )

    shutdown_requested = False

    def signal_handler(sig, frame):
        nonlocal shutdown_requested
        logger.info("Shutdown requested (Ctrl+C)")
        shutdown_requested = True

    signal.signal(signal.SIGINT, signal_handler)

    logger.info(f"Watching leaderboard {args.tournament_id} every {args.interval}s. Press Ctrl+C to stop")
    start_time = time.time()

    with poller:
        if not poller.view().has_data:
            print_leaderboard(poller.view(args.sort, args.direction), args.tournament_id)
        while not shutdown_requested:
            if args.duration is not None and (time.time() - start_time) / 60 >= args.duration:
                logger.info(f"Duration limit reached ({args.duration} minutes)")
                break
            time.sleep(0.5)

    if args.csv:
        export_to_csv(poller.view(args.sort, args.direction).entries, Path(args.csv))

    logger.info(
        f"Stopped watching: {poller.refresh_count} refreshes, {poller.failure_count} failures"
    )


def run_lineup(args, service: TournamentDataService, local_store: LocalStore) -> None:
    credentials = SessionCredentialStore(local_store)
    machine = LineupDraftMachine(
        args.tournament_id,
        DraftStore(local_store),
        service.client.submit_lineup,
        credential_provider=credentials.get
    )

    if args.action == 'clear':
        machine.clear_draft()
        print(f"Draft cleared for tournament {args.tournament_id}")
        return

    snapshot = service.get_research(args.tournament_id)
    machine.set_player_form(snapshot.player_form)
    names = {p.player_id: p.name for p in snapshot.player_form}

    if args.action == 'select':
        tier = args.tier.upper()
        player = match_player(args.player, machine.players_in_tier(tier))
        if player is None:
            logger.error(f"No player in tier {tier} matches '{args.player}'")
            sys.exit(1)
        machine.select(tier, player.player_id)

    elif args.action == 'unselect':
        machine.unselect(args.tier)

    elif args.action == 'submit':
        outcome = machine.submit()
        if not outcome.ok:
            logger.error(f"Submit error: {outcome.error} (draft kept, retry when ready)")
            sys.exit(1)
        print(f"Lineup submitted for tournament {args.tournament_id}: {format_picks(outcome.picks)}")
        return

    print(f"\nLineup draft: tournament {args.tournament_id} [{machine.status.value}]")
    picks = machine.picks
    for tier in machine.eligible_tiers:
        player_id = picks.get(tier)
        label = f"{names.get(player_id, player_id)} ({player_id})" if player_id else 'Pick 1'
        print(f"  Tier {tier}: {label}")
    if machine.status == DraftStatus.COMPLETE:
        print("Lineup complete: run 'submit' to enter it.")


def run_session(args, local_store: LocalStore) -> None:
    credentials = SessionCredentialStore(local_store)
    if args.action == 'set':
        credentials.set(args.token)
        print("Session token stored")
    else:
        credentials.clear()
        print("Session token cleared")


def run_server(args) -> None:
    import uvicorn
    from .contest.api_server import create_app

    service = build_service(args)
    logger.info(f"Serving read API on http://{args.host}:{args.port} (upstream {args.api_url})")
    uvicorn.run(create_app(service), host=args.host, port=args.port)


def main(argv=None):
    """Main execution function with command branching."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    if args.command == 'serve':
        run_server(args)
        return

    local_store = LocalStore(Path(args.state_dir))

    if args.command == 'session':
        run_session(args, local_store)
        return

    service = build_service(args)
    try:
        if args.command == 'tournaments':
            run_tournaments(args, service)
        elif args.command == 'research':
            run_research(args, service)
        elif args.command == 'leaderboard':
            run_leaderboard(args, service)
        elif args.command == 'lineup':
            run_lineup(args, service, local_store)
    except LumberTierError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    finally:
        service.client.close()


if __name__ == '__main__':
    main()
