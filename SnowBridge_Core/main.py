#!/usr/bin/env python3
"""
SnowBridge Core - Command-Line Entry Point

Loads the parcel / zone / address data, runs the query stage on the headless
engine and prints every status line the operator would have seen.

Usage:
    python -m SnowBridge_Core.main --parcels parcels.geojson \\
        --zones zones.geojson --addresses addresses.geojson \\
        --query "123 Main St" --satellite --size

Exit code is 1 when the query matches nothing.
"""

import argparse
import copy
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from SnowBridge_Core.app import SnowBridgeApp
from SnowBridge_Core.config import CONFIG
from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.data_loader import load_data
from SnowBridge_Core.status import StatusLine


# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(
    app_config: AppConfig, log_to_file: bool = True
) -> Tuple[logging.Logger, Optional[Path]]:
    """Configure the package logger with file and console handlers.

    Returns:
        Tuple of (logger, log_path); log_path is None when file logging is off.
    """
    level = getattr(logging, app_config.logging.level, logging.INFO)

    logger = logging.getLogger("SnowBridge_Core")
    logger.setLevel(level)
    logger.handlers.clear()

    log_path: Optional[Path] = None
    if log_to_file:
        log_dir = Path(app_config.logging.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        # Compact timestamp: MMDD_HHMM
        timestamp = datetime.now().strftime("%m%d_%H%M")
        log_path = log_dir / f"snowbridge_{timestamp}.log"

        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    return logger, log_path


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ ARGUMENTS
# ═══════════════════════════════════════════════════════════════════════════


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search a parcel, enter the query stage and toggle overlays headlessly."
    )
    parser.add_argument("--parcels", required=True, help="Parcel polygons (GeoJSON).")
    parser.add_argument("--zones", help="Buffer-zone polygons joined by roll (GeoJSON).")
    parser.add_argument("--addresses", help="Address points (GeoJSON).")
    parser.add_argument(
        "--query", required=True, help="Address text or roll number to search for."
    )
    parser.add_argument("--satellite", action="store_true", help="Turn the satellite mask on.")
    parser.add_argument("--size", action="store_true", help="Turn the size label on.")
    parser.add_argument("--join-key", help="Property holding the roll (default from config).")
    parser.add_argument("--log-level", help="Logging level (default from config).")
    parser.add_argument(
        "--no-log-file", action="store_true", help="Log to the console only."
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """CONFIG with the command-line overrides applied."""
    cfg = copy.deepcopy(CONFIG)
    files = cfg.setdefault("data", {}).setdefault("files", {})
    files["parcels"] = args.parcels
    files["zones"] = args.zones or ""
    files["addresses"] = args.addresses or ""
    if args.join_key:
        cfg["data"]["join_key"] = args.join_key
    if args.log_level:
        cfg.setdefault("logging", {})["level"] = args.log_level
    return cfg


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    app_config = AppConfig.from_dict(build_config(args))
    logger, log_path = setup_logging(app_config, log_to_file=not args.no_log_file)
    if log_path is not None:
        logger.debug(f"Log file: {log_path}")

    for problem in app_config.validate():
        logger.warning(f"⚠️ Config: {problem}")

    data = load_data(
        app_config.data.parcels_file,
        app_config.data.zones_file,
        app_config.data.addresses_file,
        join_key=app_config.data.join_key,
        label_fields=app_config.ranker.label_fields,
    )

    status = StatusLine(listener=print, history=app_config.logging.status_history)
    app = SnowBridgeApp(app_config, data.registry, data.address_rows, status=status)
    try:
        roll = app.submit_query(args.query)
        if roll is None:
            logger.info(f"❌ No parcel matched {args.query!r}")
            return 1

        if args.satellite:
            app.toggle_satellite(True)
        if args.size:
            app.toggle_size(True)
        logger.info(f"✅ Done • roll {roll} • zoom {app.engine.get_zoom():g}")
        return 0
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
