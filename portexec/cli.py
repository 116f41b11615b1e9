import sys
import argparse

from . import config
from .debuglog import debug_log
from .errors import ScanError
from .killer import Killer
from .models import ConnectionState, FilterCriteria, apply_filter, is_valid_port, unique_pids
from .scanner import Scanner


def _get_app_version():
    from . import __version__
    return __version__


def format_uptime(delta):
    seconds = int(delta.total_seconds())
    if seconds <= 0:
        return "-"
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="portexec",
        description="Inspect and kill processes bound to TCP/UDP ports.")
    parser.add_argument("--version", action="version", version=f"portexec {_get_app_version()}")
    sub = parser.add_subparsers(dest="command")

    p_list = sub.add_parser("list", help="List processes on ports")
    p_list.add_argument("port", nargs="?", help="Only show this port")
    p_list.add_argument("-l", "--listen", action="store_true", help="Show only listening ports")
    p_list.add_argument("-p", "--path", action="store_true", help="Show executable path")
    p_list.add_argument("-f", "--filter", help="Port number or process name substring")

    p_kill = sub.add_parser("kill", help="Kill process on a port")
    p_kill.add_argument("port", help="Port whose owning process(es) to kill")
    p_kill.add_argument("--force", action="store_true",
                        help="DANGEROUS: skip the critical-process check and SIGKILL directly")
    p_kill.add_argument("--yes", action="store_true", help="Do not ask for --force confirmation")

    sub.add_parser("check", help="Check if running with administrator/root privileges")
    return parser.parse_args(argv)


def cmd_list(args, scanner, out=None):
    out = out or sys.stdout
    states = [ConnectionState.LISTENING.value] if args.listen else None
    entries = scanner.scan(states)
    if args.port:
        entries = [e for e in entries if str(e.port) == args.port]
    if args.filter:
        entries = apply_filter(entries, FilterCriteria.parse(args.filter))
    show_path = args.path or config.CONFIG.get("show_path", False)

    print(f"{'PROTO':<6} {'PORT':<6} {'PID':<7} {'PROCESS':<20} {'STATE':<12} {'UPTIME':<8}", file=out)
    print("-" * 64, file=out)
    for e in entries:
        flag = " [SYSTEM]" if e.protected else ""
        print(f"{e.protocol:<6} {e.port:<6} {e.pid:<7} {e.process_name[:20]:<20} {e.state:<12} "
              f"{format_uptime(e.uptime):<8}{flag}", file=out)
        if show_path and e.exe_path:
            print(f"    Path: {e.exe_path}", file=out)
    print(f"\nTotal: {len(entries)} entries", file=out)
    return 0


def _confirm_force(pid, name, ask=input, out=None):
    out = out or sys.stdout
    print(f"WARNING: --force skips the critical-process check for {name} (PID {pid}).", file=out)
    try:
        answer = ask(f"Type {pid} to confirm: ")
    except EOFError:
        return False
    return answer.strip() == str(pid)


def cmd_kill(args, scanner, killer, out=None, ask=input):
    out = out or sys.stdout
    if not is_valid_port(args.port):
        print(f"Error: invalid port {args.port}", file=out)
        return 1
    entries = scanner.by_port(int(args.port))
    if not entries:
        print(f"Error: no process found on port {args.port}", file=out)
        return 1

    names = {e.pid: e.process_name for e in entries}
    pids = unique_pids(entries)
    print(f"Found {len(pids)} unique process(es) on port {args.port}:\n", file=out)

    has_error = False
    for pid in pids:
        name = names[pid]
        if args.force:
            if not args.yes and not _confirm_force(pid, name, ask, out):
                print(f"Skipped {name} (PID: {pid})", file=out)
                has_error = True
                continue
            result = killer.force_kill(pid)
        else:
            result = killer.kill_with_verification(pid, name)
        if result.success:
            print(f"Killing {name} (PID: {pid})... OK", file=out)
        else:
            print(f"Killing {name} (PID: {pid})... FAILED: {result.message}", file=out)
            has_error = True
    return 1 if has_error else 0


def cmd_check(killer, out=None):
    out = out or sys.stdout
    if killer.is_elevated():
        print("Running with administrator privileges", file=out)
        return 0
    print("NOT running with administrator privileges", file=out)
    return 1


def main(argv=None, backend=None):
    args = parse_args(argv)
    scanner = Scanner(backend)
    killer = Killer(scanner.backend, scanner.resolver)
    command = args.command or "list"
    debug_log(f"CLI: {command}")
    try:
        if command == "kill":
            return cmd_kill(args, scanner, killer)
        if command == "check":
            return cmd_check(killer)
        if args.command is None:
            args = parse_args(["list"])
        return cmd_list(args, scanner)
    except ScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cli_entry():
    """terminal command 'portexec' entry point"""
    if sys.version_info < (3, 7):
        print("Python 3.7 or newer is required.")
        sys.exit(1)
    config.init_config()
    sys.exit(main())
