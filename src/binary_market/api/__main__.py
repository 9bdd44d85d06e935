"""Allow running the journal API as: python -m binary_market.api [--config path]."""

import argparse

from binary_market.api.runner import main

parser = argparse.ArgumentParser(description="Binary market journal API")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(config_path=args.config)
