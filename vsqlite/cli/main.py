"""CLI entry for vsqlite.

Usage:
  vsqlite <database-file> [--history-file PATH] [--engine sqlite|duckdb]
                          [--log-level LEVEL] [--log-file PATH] [--no-banner]

Exit codes: 0 on ``exit`` or end of input, 1 when the database cannot be
opened, 2 on invalid arguments.
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from vsqlite import __version__
from vsqlite.cli.repl import start_repl
from vsqlite.core.engine import open_engine
from vsqlite.core.errors import ConfigError, DatabaseOpenError
from vsqlite.core.history import HistoryStore
from vsqlite.core.session import Session
from vsqlite.utils.config import load_config
from vsqlite.utils.constants import SUPPORTED_ENGINES, LOG_LEVELS
from vsqlite.utils.logging_setup import configure_logging
from vsqlite.utils.validation import validate_database_path, ValidationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='vsqlite', description='Interactive SQLite client')
    p.add_argument('database', help='Database file to open (created if missing)')
    p.add_argument('--history-file', help='History file path (default ~/.vsqlite_history)')
    p.add_argument('--engine', choices=SUPPORTED_ENGINES,
                   help='Database engine (default: duckdb for .duckdb/.ddb files, else sqlite)')
    p.add_argument('--config', help='Config file path (default ~/.vsqlite_config.json)')
    p.add_argument('--log-level', choices=LOG_LEVELS, help='Diagnostics level (default WARNING)')
    p.add_argument('--log-file', help='Also write diagnostics to this file')
    p.add_argument('--no-banner', action='store_true', help='Do not print the command summary on start')
    p.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return p


def run(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    for key in ('history_file', 'engine', 'log_level'):
        value = getattr(args, key)
        if value:
            cfg.set(key, value)
    cfg.validate()
    configure_logging(cfg.get('log_level'), log_file=args.log_file)

    validate_database_path(args.database)
    engine = open_engine(args.database, cfg.get('engine'))
    history = HistoryStore(cfg.get('history_file'))
    history.load()
    session = Session(engine, history)
    try:
        return start_repl(session, prompt=cfg.get('prompt'), show_banner=not args.no_banner)
    finally:
        session.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        code = run(args)
    except (ValidationError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 2
    except DatabaseOpenError as e:
        print(f"Failed to open database: {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = 130
    except Exception as e:
        logging.error(f"Unhandled error: {e}", exc_info=True)
        code = 1
    sys.exit(code)


if __name__ == '__main__':
    main()
