"""Utility for initializing the NAXOS POS ``config.ini``.

The module doubles as a script (``python setup_config.py``) and as a library
used by tests or other tooling. Shared helpers keep the bootstrap logic
consistent regardless of the execution path.
"""

from __future__ import annotations

import argparse
import configparser
from pathlib import Path
from typing import Mapping, Optional, Sequence
import sys

CONFIG_FILE = "config.ini"

# Sections and options written to a fresh configuration file.
DEFAULT_SETTINGS: Mapping[str, Mapping[str, str]] = {
    "Api": {
        "BaseUrl": "http://localhost:3000",
        "Token": "",
        "TimeoutSeconds": "10",
    },
    "Defaults": {
        "LocationId": "1",
        "PageSize": "10",
    },
}


def create_config_file(
    destination: Path,
    *,
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    location_id: Optional[int] = None,
    defaults: Mapping[str, Mapping[str, str]] = DEFAULT_SETTINGS,
    overwrite: bool = False,
) -> Path:
    """Write a NAXOS POS configuration file at ``destination``.

    Parameters are overridable to facilitate testing. When ``overwrite`` is
    ``False`` (the default) this function raises ``FileExistsError`` if the
    target already exists.
    """

    destination = destination.expanduser().resolve()
    if destination.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing configuration: {destination}"
        )

    destination.parent.mkdir(parents=True, exist_ok=True)

    parser = configparser.ConfigParser()
    parser.optionxform = str  # keep option names as written
    for section, options in defaults.items():
        parser[section] = dict(options)

    if base_url is not None:
        parser["Api"]["BaseUrl"] = base_url
    if token is not None:
        parser["Api"]["Token"] = token
    if location_id is not None:
        parser["Defaults"]["LocationId"] = str(location_id)

    with destination.open("w", encoding="utf-8") as handle:
        parser.write(handle)
    return destination


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize NAXOS POS configuration")
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help="Path to configuration file (default: config.ini)",
    )
    parser.add_argument("--base-url", default=None, help="Sales service base URL.")
    parser.add_argument("--token", default=None, help="Bearer token for the sales service.")
    parser.add_argument("--location-id", type=int, default=None)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the configuration file if it already exists.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    config_path = Path(args.config).expanduser().resolve()

    print("--- NAXOS POS Setup Script ---")
    print(f"Writing configuration: {config_path}")

    try:
        output_path = create_config_file(
            config_path,
            base_url=args.base_url,
            token=args.token,
            location_id=args.location_id,
            overwrite=args.force,
        )
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing file if appropriate.")
        return 1
    except (PermissionError, OSError) as exc:
        print(f"\n[ERROR] Unable to write configuration: {exc}")
        return 1

    print(f"\n[SUCCESS] Created configuration at '{output_path}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
