from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from .logging_config import configure_logging
from .scheduler import CalloutScheduler
from .settings import SchedulerSettings
from .sim import CalloutSimulation, load_script

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="callouts-sim", description="Replay a scripted callout timeline headlessly")
    p.add_argument("script", type=Path, help="YAML timeline script")
    p.add_argument("--settings", type=Path, default=None, help="YAML file overriding scheduler pacing")
    p.add_argument("--debug", action="store_true", help="Log every promotion and expiry")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(logging.WARNING, debug=args.debug)

    try:
        settings = SchedulerSettings.load(args.settings)
        script = load_script(args.script)
    except (FileNotFoundError, ValidationError, ValueError, yaml.YAMLError) as e:
        logger.error("%s", e)
        return 2

    sim = CalloutSimulation(script, CalloutScheduler(settings))
    sim.run()
    # Print JSON summary so it can be diffed across runs
    print(json.dumps(sim.summary(), indent=2, sort_keys=True, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
