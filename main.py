#!/usr/bin/env python3
"""
Tool Package Installer Server - Main entry point

Usage:
    tool_package_server <port> \
        [--store-dir=<STORE_DIR>] \
        [--local-download-dir=<DIR>] \
        [--feed=<FEED>]... \
        [--nuget-config=<NUGET_CONFIG>] \
        [--target-framework=<TFM>] \
        [--runtime-identifier=<RID>] \
        [--runtime-graph=<RUNTIME_JSON>] \
        [--log-level=<LEVEL>]

Options not given on the command line fall back to TOOL_PACKAGE_*
environment variables.
"""

import argparse
import dataclasses
import logging
import uvicorn

from application.config import InstallerConfig
from interfaces.api import initialize_app


def build_config(args: argparse.Namespace) -> InstallerConfig:
    """Overlay command-line options on the environment configuration."""
    overrides = {
        "store_dir": args.store_dir,
        "local_download_dir": args.local_download_dir,
        "target_framework": args.target_framework,
        "runtime_identifier": args.runtime_identifier,
        "runtime_graph_path": args.runtime_graph,
    }
    return dataclasses.replace(
        InstallerConfig.from_env(),
        **{name: value for name, value in overrides.items() if value}
    )


def main():
    parser = argparse.ArgumentParser(
        description='Tool Package Installer Server - installs tool packages and their asset manifests',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('port', type=int, help='Port to listen on')
    parser.add_argument('--store-dir', help='Root of the global tool package store')
    parser.add_argument('--local-download-dir', help='Directory local installs download into')
    parser.add_argument('--feed', action='append', default=[],
                        help='Package source (local folder or NuGet v3 URL); may be repeated')
    parser.add_argument('--nuget-config', help='NuGet.Config file listing package sources')
    parser.add_argument('--target-framework', help='Target framework of installed tools (default: net8.0)')
    parser.add_argument('--runtime-identifier', help='Runtime identifier (default: detected)')
    parser.add_argument('--runtime-graph', help='runtime.json overriding the bundled runtime graph')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    parser.add_argument('--host', default='127.0.0.1',
                        help='Host to bind to (default: 127.0.0.1)')

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    config = build_config(args)
    app = initialize_app(config, feeds=args.feed, nuget_config=args.nuget_config)

    logger = logging.getLogger(__name__)
    logger.info("Starting Tool Package Installer on %s:%s", args.host, args.port)
    logger.info("Store directory: %s", config.store_dir)
    logger.info("Target: %s/%s", config.target_framework, config.runtime_identifier)

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == '__main__':
    main()
