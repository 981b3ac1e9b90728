#!/usr/bin/env python3
"""
vimimswitch CLI entry point with file logging.

Reads mode notifications from stdin (see ``vimimswitch.platform.stream_source``)
and switches the input method accordingly.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import signal
import sys
import traceback
from pathlib import Path

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch import __version__

LOG_FORMAT = '[%(asctime)s] %(levelname)-8s %(message)s'
DEFAULT_LOG_FILE = '~/.vimimswitch.log'


def setup_logging(debug: bool = False, log_file: str | None = None) -> logging.Logger:
    """Setup logging to both console and file.

    Args:
        debug: Enable debug level logging
        log_file: Path to log file (default: ~/.vimimswitch.log)
    """
    logger = logging.getLogger('vimimswitch')
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Called again (tests, reload): replace our handlers instead of stacking
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_path = Path(os.path.expanduser(log_file or DEFAULT_LOG_FILE))
    fmt = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # File handler (rotate log file when it gets too large)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding='utf-8',
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)
    except OSError as e:
        print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    # Console handler (warnings and errors in production, all in debug)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    console_handler.setFormatter(fmt)
    logger.addHandler(console_handler)

    return logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='vimimswitch',
        description='Switch the input method when a Vim-style editor changes mode. '
                    'Mode notifications are read from stdin, one per line: '
                    '"<mode>" or "<editor-id>:<mode>".',
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode with verbose logging',
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to config file (default: ~/.config/vimimswitch/config.json)',
    )
    parser.add_argument(
        '--logfile',
        type=str,
        default=None,
        help=f'Path to log file (default: {DEFAULT_LOG_FILE})',
    )
    parser.add_argument(
        '--legacy',
        action='store_true',
        help='Treat stdin as one global mode source instead of per-editor sources',
    )
    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s ' + __version__,
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for vimimswitch."""
    args = parse_args(argv)

    log = setup_logging(debug=args.debug, log_file=args.logfile)
    log.info("vimimswitch started (version %s, pid %d)", __version__, os.getpid())

    # Import after args parsing to avoid import-time side effects
    from vimimswitch.app import VimIMSwitchApp

    try:
        app = VimIMSwitchApp(
            config_path=args.config,
            debug=args.debug,
            legacy_editor=args.legacy,
        )
        app.load()
    except Exception as e:
        log.error("Failed to start: %s", e)
        log.debug(traceback.format_exc())
        return 1

    if app.settings.debug and not args.debug:
        log.setLevel(logging.DEBUG)

    def _reload_handler(signum, frame):
        app.reload_settings()

    # SIGHUP re-reads the config file, as after editing it by hand
    old_sighup = None
    if hasattr(signal, 'SIGHUP'):
        old_sighup = signal.signal(signal.SIGHUP, _reload_handler)

    try:
        app.run(sys.stdin)
        log.info("stdin closed")
        return 0
    except KeyboardInterrupt:
        log.info("Terminated by user (Ctrl+C)")
        return 0
    except BrokenPipeError:
        log.error("Broken pipe error - pipeline was closed")
        return 1
    finally:
        app.unload()
        if old_sighup is not None:
            signal.signal(signal.SIGHUP, old_sighup)


if __name__ == '__main__':
    sys.exit(main())
