import argparse
import logging
import shlex
import sys
from .cli import IPSetCLI
from .config import check_level, load_config
from .errors import BinaryNotFound, ConfigError
from .ipset import IPSet

def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="ipsetctl", description="ipset command wrapper")
    p.add_argument("--config", "-c", help="Path to YAML configuration file")
    p.add_argument("--log-level", help="Logging level (default: from config)")
    p.add_argument("command", nargs="?")
    p.add_argument("args", nargs=argparse.REMAINDER)
    args = p.parse_args(argv)

    try:
        settings = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        level = check_level(args.log_level or settings.log_level)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        ipset = IPSet.from_settings(settings)
    except BinaryNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    c = IPSetCLI(ipset, settings, args.config)
    if not args.command:
        c.cmdloop()
        return 0
    c.onecmd(" ".join([args.command] + [shlex.quote(a) for a in args.args]))
    return 1 if c.failed else 0

if __name__ == "__main__":
    sys.exit(main())
