#!/usr/bin/env python3
"""
spanheat - activity heatmap server.

Serves calendar heatmaps (one cell per day) rendered from a time-tracking
API's spans.

Usage:
    spanheat [options]
    python -m spanheat.spanheat [options]
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from spanheat.config.loader import load_config


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all CLI flags."""
    parser = argparse.ArgumentParser(
        prog='spanheat',
        description='Calendar activity heatmaps from time-tracking spans'
    )
    parser.add_argument('--config', metavar='FILE', type=Path,
                       help='Config file (default: ~/.spanheat/config.json)')
    parser.add_argument('--host',
                       help='Address to bind (default from config: 0.0.0.0)')
    parser.add_argument('--port', type=int,
                       help='Port to listen on (default from config: 8282)')
    parser.add_argument('--upstream-url', metavar='URL',
                       help='Spans endpoint template containing {user_id}')
    parser.add_argument('--log-level',
                       choices=['debug', 'info', 'warning', 'error'],
                       help='Logging verbosity (default from config: info)')
    parser.add_argument('--metrics', action='store_true',
                       help='Serve Prometheus metrics (also enabled by METRICS=1)')
    parser.add_argument('--metrics-port', type=int,
                       help='Port for /metrics (default from config: 9292)')
    return parser


def metrics_from_env() -> bool:
    """True when the METRICS environment variable is 1 or true."""
    return os.environ.get('METRICS', '').strip().lower() in ('1', 'true')


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.host:
        config['host'] = args.host
    if args.port:
        config['port'] = args.port
    if args.upstream_url:
        config['upstream_url'] = args.upstream_url
    if args.log_level:
        config['log_level'] = args.log_level
    if args.metrics or metrics_from_env():
        config['metrics_enabled'] = True
    if args.metrics_port:
        config['metrics_port'] = args.metrics_port

    if '{user_id}' not in config['upstream_url']:
        print("Error: upstream_url must contain a {user_id} placeholder")
        return 1

    return _run_serve(config)


def _run_serve(config) -> int:
    """Start the heatmap server."""
    import uvicorn

    from spanheat.server.app import create_app

    logging.basicConfig(
        level=config['log_level'].upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app = create_app(config=config)
    if config['metrics_enabled']:
        app.state.metrics.serve(int(config['metrics_port']))

    logging.getLogger('spanheat').info(
        "Listening on http://%s:%s", config['host'], config['port']
    )
    uvicorn.run(app, host=config['host'], port=config['port'], log_level=config['log_level'])
    return 0


if __name__ == '__main__':
    sys.exit(main())
