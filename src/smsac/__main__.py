"""Entry point: python -m smsac [tree|watch ADDR [TYPE]|info]

- No args / "tree": Print the manager/managee tree of the running game
- "watch":          Print the fields of one object and keep refreshing values
- "info":           Print the game pid and build version
"""

from __future__ import annotations

import asyncio
import logging
import sys

from smsac.api import MemoryApi
from smsac.client import RpcClient
from smsac.codec import format_address
from smsac.config import SmsacConfig, load_config
from smsac.errors import SmsacError
from smsac.graph import ObjectGraph
from smsac.models import Manager
from smsac.watch import FieldWatcher


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def _connect(config: SmsacConfig) -> MemoryApi:
    client = RpcClient(connect_timeout=config.server.connect_timeout)
    await client.connect(config.server.url, config.server.protocol)
    return MemoryApi(client)


async def _info(api: MemoryApi) -> None:
    pid = await api.init()
    version = await api.get_version()
    print(f"pid: {pid}  version: {version.value}")


async def _tree(api: MemoryApi) -> None:
    await _info(api)
    graph = ObjectGraph(api)
    for node in await graph.load():
        m = node.manager
        print(f"{format_address(m.addr)}  {m.label}  {m.type_name}")
        for o in await node.expand(api):
            print(f"  {format_address(o.addr)}  {o.label}  {o.type_name or '?'}")


async def _watch(api: MemoryApi, config: SmsacConfig, addr: int, type_name: str | None) -> None:
    if type_name is None:
        type_name = await api.get_class(addr)
        if type_name is None:
            raise SystemExit(f"Cannot resolve class at {format_address(addr)}")

    def on_values(target, values: list) -> None:
        line = "  ".join(f"{f.name}={v}" for f, v in zip(watcher.fields, values))
        sys.stdout.write(f"\r{line}")
        sys.stdout.flush()

    watcher = FieldWatcher(api, interval=config.watch.interval, on_values=on_values)
    target = Manager(addr=addr, type_name=type_name, name=type_name, count=0)
    fields = await watcher.view(target)
    for f in fields:
        print(f"{f.offset:>12}  {f.name:<24}  {f.type_name:<12}  {f.class_name}")

    try:
        while watcher.is_polling:
            await asyncio.sleep(0.5)
    finally:
        watcher.cancel()
        print()


async def _run(cmd: str, args: list[str], config: SmsacConfig) -> None:
    api = await _connect(config)
    try:
        if cmd == "info":
            await _info(api)
        elif cmd == "watch":
            addr = int(args[0], 16)
            await _watch(api, config, addr, args[1] if len(args) > 1 else None)
        else:
            await _tree(api)
    finally:
        await api.client.close()


def _usage() -> None:
    print("Usage: python -m smsac [tree|watch ADDR [TYPE]|info]")
    print("  tree   — Print managers and their managees (default)")
    print("  watch  — Live view of the fields of the object at ADDR (hex)")
    print("  info   — Print game pid and version")


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "tree"
    args = sys.argv[2:]

    if cmd not in ("tree", "watch", "info") or (cmd == "watch" and not args):
        _usage()
        sys.exit(1)

    config = load_config()
    _setup_logging(config.log_level)

    try:
        asyncio.run(_run(cmd, args, config))
    except KeyboardInterrupt:
        pass
    except SmsacError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
