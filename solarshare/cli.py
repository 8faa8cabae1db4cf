"""Command line entry point: run the server or act as a client."""

import argparse
import asyncio
import logging
import sys

from solarshare.client import SolarShareClient
from solarshare.config import API_HOST, API_PORT, API_URL, HEARTBEAT_INTERVAL, ID_FILE
from solarshare.discovery.identity import default_display_name, load_or_assign_participant_id
from solarshare.discovery.loop import DiscoveryLoop
from solarshare.errors import SolarShareError
from solarshare.transfer.models import OutgoingFile, TransferStatus
from solarshare.transfer.orchestrator import TransferOrchestrator


def cmd_serve(args: argparse.Namespace) -> int:
    from solarshare.main import run

    run(host=args.host, port=args.port)
    return 0


def cmd_peers(args: argparse.Namespace) -> int:
    client = SolarShareClient(args.url)
    try:
        participants = client.list_participants()
    except SolarShareError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    if not participants:
        print("No participants online.")
        return 0

    print(f"  {'ID':>4}  {'NAME':<20}  IP")
    print("  " + "-" * 40)
    for p in participants:
        print(f"  {p.id:>4}  {p.user_name:<20}  {p.ip_address}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    client = SolarShareClient(args.url)
    try:
        count = client.clear()
    except SolarShareError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()
    print(f"Cleared {count} participant(s).")
    return 0


async def _send(args: argparse.Namespace, client: SolarShareClient) -> int:
    try:
        files = [OutgoingFile.from_path(path) for path in args.paths]
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sender_id = load_or_assign_participant_id(args.id_file)
    target_name = default_display_name(args.target)
    try:
        participants = await asyncio.to_thread(client.list_participants)
    except SolarShareError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for p in participants:
        if p.id == args.target:
            target_name = p.user_name
            break
    else:
        print(f"User {args.target} is not online; sending anyway.", file=sys.stderr)

    orchestrator = TransferOrchestrator(client, linger=0)
    completed = []

    async def report(event_type: str, data: dict) -> None:
        if event_type == "transfer_state" and data["status"] != TransferStatus.PENDING.value:
            print(f"  {data['file_name']:<30} {data['status']}")
            if data["status"] == TransferStatus.COMPLETED.value:
                completed.append(data["file_name"])

    orchestrator.on_event(report)
    print(f"Sending {len(files)} file(s) to {target_name} (ID: {args.target})")
    await orchestrator.send_files(files, args.target, target_name, sender_id)

    return 0 if len(completed) == len(files) else 1


def cmd_send(args: argparse.Namespace) -> int:
    client = SolarShareClient(args.url)
    try:
        return asyncio.run(_send(args, client))
    finally:
        client.close()


async def _watch(args: argparse.Namespace, client: SolarShareClient) -> None:
    participant_id = load_or_assign_participant_id(args.id_file)
    loop = DiscoveryLoop(client, participant_id, args.name, interval=args.interval)

    async def show(participants) -> None:
        names = ", ".join(f"{p.name} [{p.color}]" for p in loop.others) or "nobody else"
        print(f"{len(participants)} online: {names}")

    loop.on_update(show)
    await loop.start()
    try:
        while True:
            await asyncio.sleep(args.interval)
            if loop.error:
                print(f"Error: {loop.error}", file=sys.stderr)
    finally:
        await loop.stop()


def cmd_watch(args: argparse.Namespace) -> int:
    client = SolarShareClient(args.url)
    try:
        asyncio.run(_watch(args, client))
    except KeyboardInterrupt:
        pass
    finally:
        client.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solarshare",
        description="Share files between devices on the local network",
    )
    p.add_argument("--url", default=API_URL, help=f"Server URL (default {API_URL})")
    p.add_argument("--id-file", default=ID_FILE, help="Where the local participant id is kept")
    p.add_argument("-v", "--verbose", action="store_true")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the registry and upload server")
    s.add_argument("--host", default=API_HOST)
    s.add_argument("--port", type=int, default=API_PORT)

    sub.add_parser("peers", help="List participants that are online")
    sub.add_parser("clear", help="Remove every participant from the registry")

    t = sub.add_parser("send", help="Send files to a participant")
    t.add_argument("target", type=int, help="Participant id of the recipient")
    t.add_argument("paths", nargs="+", metavar="path")

    w = sub.add_parser("watch", help="Stay online and print the participant list")
    w.add_argument("--name", default=None, help="Display name (default 'User <id>')")
    w.add_argument("--interval", type=float, default=HEARTBEAT_INTERVAL)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    dispatch = {
        "serve": cmd_serve,
        "peers": cmd_peers,
        "clear": cmd_clear,
        "send": cmd_send,
        "watch": cmd_watch,
    }
    return dispatch[args.cmd](args)


if __name__ == "__main__":
    sys.exit(main())
