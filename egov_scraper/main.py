"""CLI entry point and orchestrator."""

import argparse
import logging
import time

from .config import load_config
from .db import Database
from .downloader import PortalHttp
from .logger import setup_logger
from .roster import load_credentials, load_roster, run_key
from .storage import LocalFolderStorage
from .workflow import ClientWorkflow

logger = logging.getLogger("egov_scraper")


def run_clients(config, db, client_name=None, roster_path=None, transport=None):
    """Process every roster client not yet marked done for today's run."""
    clients, roster_creds = load_roster(roster_path or config.roster_path)
    credentials = load_credentials(roster_creds)
    key = run_key(config.portal.timezone)

    if client_name:
        clients = [c for c in clients if c.name == client_name]
        if not clients:
            raise SystemExit(f"No client named {client_name!r} in roster")

    storage = LocalFolderStorage(config.storage.root_dir)
    start = time.time()
    budget = config.portal.max_run_seconds
    outcomes = []

    with PortalHttp(config.http, transport=transport) as http:
        workflow = ClientWorkflow(config, http, storage, credentials, db=db, run_key=key)
        for client in clients:
            if budget and time.time() - start > budget:
                logger.warning(f"Run budget of {budget}s used up, stopping before {client.name}")
                break
            if db.is_client_done(key, client.name):
                logger.info(f"[{client.name}] Already done for {key}, skipping")
                continue

            outcome = workflow.process_client(client)
            db.mark_client(key, client.name, outcome.status, outcome.error)
            outcomes.append(outcome)

    return outcomes


def show_stats(db):
    """Display filing and upload statistics."""
    print("\n" + "=" * 70)
    print("  FILING STATISTICS")
    print("=" * 70)
    print(f"{'Client':<24} {'Status':<12} {'Filings':>8} {'Files':>8} {'Size':>12}")
    print("-" * 70)

    total_filings = 0
    total_files = 0
    for client, status, count, files, total_b in db.get_stats():
        print(f"{client:<24} {status:<12} {count:>8} {files:>8} {_format_bytes(total_b):>12}")
        total_filings += count
        total_files += files

    print("-" * 70)
    print(f"{'TOTAL':<24} {'':12} {total_filings:>8} {total_files:>8}")
    print()


def _format_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    elif n < 1024 ** 2:
        return f"{n / 1024:.1f} KB"
    elif n < 1024 ** 3:
        return f"{n / 1024 ** 2:.1f} MB"
    else:
        return f"{n / 1024 ** 3:.2f} GB"


def main():
    parser = argparse.ArgumentParser(description="e-Gov filing document downloader")
    parser.add_argument("--client", type=str, default=None,
                        help="Run a single roster client instead of all")
    parser.add_argument("--roster", type=str, default=None,
                        help="Path to roster file (overrides config)")
    parser.add_argument("--stats", action="store_true",
                        help="Show filing/upload statistics")
    parser.add_argument("--config", type=str, default="config.yaml",
                        help="Path to config file")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logger(config.log_dir, config.log_level)
    db = Database(config.db_path)

    if args.stats:
        show_stats(db)
        return

    outcomes = run_clients(config, db, args.client, args.roster)
    aborted = [o.client for o in outcomes if o.status == "aborted"]
    if aborted:
        logger.warning(f"Aborted clients (will retry on next run): {', '.join(aborted)}")
    show_stats(db)


if __name__ == "__main__":
    main()
