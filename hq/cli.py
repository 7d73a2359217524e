"""Command-line interface for HQ.

Usage:
    python3 -m hq.cli serve
    python3 -m hq.cli show kanban
    python3 -m hq.cli backups <piece-id> linkedin
    python3 -m hq.cli docs
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from hq.common.config import load_config, load_env_local, setup_logging
from hq.service import HQService
from hq.store.registry import DOCUMENTS


def cmd_serve(args: argparse.Namespace, cfg: dict) -> None:
    import uvicorn

    setup_logging(cfg)
    if args.config:
        os.environ["HQ_CONFIG"] = str(Path(args.config).resolve())
    server = cfg.get("server", {})
    uvicorn.run(
        "hq.dashboard.app:app",
        host=args.host or server.get("host", "127.0.0.1"),
        port=args.port or int(server.get("port", 3000)),
    )


def cmd_show(args: argparse.Namespace, cfg: dict) -> None:
    svc = HQService.from_config(cfg)
    print(json.dumps(svc.store.read(args.document), indent=2, ensure_ascii=False))


def cmd_backups(args: argparse.Namespace, cfg: dict) -> None:
    svc = HQService.from_config(cfg)
    backups = svc.list_backups(args.piece_id, args.format)
    if not backups:
        print(f"No backups for {args.piece_id} ({args.format}).")
        return
    print(f"{len(backups)} backup(s) for {args.piece_id} ({args.format}), newest first:\n")
    for b in backups:
        print(f"  {b['savedAt']}  {b['filename']}")


def cmd_docs(args: argparse.Namespace, cfg: dict) -> None:
    svc = HQService.from_config(cfg)
    docs = svc.get_docs().get("docs", [])
    registered = {d.get("filename") for d in docs}
    for d in docs:
        print(f"  [{d.get('category', ''):10s}] {d.get('title')}  ({d.get('filename')})")
    unregistered = [f for f in svc.drafts.list_doc_files() if f not in registered]
    if unregistered:
        print("\nUnregistered files:")
        for name in unregistered:
            print(f"  {name}")


def main() -> None:
    parser = argparse.ArgumentParser(prog="hq", description="HQ productivity dashboard")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")

    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)

    p_show = sub.add_parser("show", help="Print a stored document")
    p_show.add_argument("document", choices=sorted(DOCUMENTS))

    p_backups = sub.add_parser("backups", help="List draft backups")
    p_backups.add_argument("piece_id")
    p_backups.add_argument("format")

    sub.add_parser("docs", help="List registered docs")

    args = parser.parse_args()
    load_env_local()
    cfg = load_config(args.config)

    dispatch = {
        "serve": cmd_serve,
        "show": cmd_show,
        "backups": cmd_backups,
        "docs": cmd_docs,
    }
    dispatch[args.command](args, cfg)


if __name__ == "__main__":
    main()
