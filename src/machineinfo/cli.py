"""machineinfo - command line entry point."""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from machineinfo.models import SectionResult
from machineinfo.probe import HostProbe, QueryError
from machineinfo.reporters import SECTIONS

__version__ = "0.1.0"

logger = logging.getLogger("machineinfo")

# Report order when no section is requested explicitly
DEFAULT_PLAN = ("hostname", "network", "osname", "sysinfo", "cpu")


@dataclass(slots=True, frozen=True)
class Options:
    """Parsed command line flags."""

    hostname: bool = False
    os: bool = False
    cpu: bool = False
    network: bool = False
    verbose: bool = False

    @property
    def any_section(self) -> bool:
        """True when at least one report section was requested."""
        return self.hostname or self.os or self.cpu or self.network


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="machineinfo",
        description="Print a snapshot of local machine state. "
        "With no flags every section is printed.",
    )
    parser.add_argument("--hostname", action="store_true", help="Print the hostname")
    parser.add_argument(
        "--os", action="store_true", help="Print system statistics and CPU info"
    )
    parser.add_argument("--cpu", action="store_true", help="Print CPU info")
    parser.add_argument("--network", action="store_true", help="Print network interfaces")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log OS queries to stderr"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_options(argv: list[str] | None = None) -> Options:
    """Parse command line arguments. Exits with status 2 on unknown flags."""
    args = build_parser().parse_args(argv)
    return Options(
        hostname=args.hostname,
        os=args.os,
        cpu=args.cpu,
        network=args.network,
        verbose=args.verbose,
    )


def plan_sections(options: Options) -> list[str]:
    """Return the section names to run, in print order, each at most once."""
    if not options.any_section:
        return list(DEFAULT_PLAN)

    plan: list[str] = []
    if options.hostname:
        plan.append("hostname")
    if options.os:
        plan.extend(["sysinfo", "cpu"])
    if options.cpu and "cpu" not in plan:
        plan.append("cpu")
    if options.network:
        plan.append("network")
    return plan


def run_section(name: str, probe: HostProbe) -> SectionResult:
    """Run one report section, capturing a failed OS query as its result."""
    try:
        lines = SECTIONS[name](probe)
    except QueryError as exc:
        return SectionResult(name=name, error=str(exc))
    return SectionResult(name=name, lines=tuple(lines))


def dispatch(options: Options, probe: HostProbe, out: TextIO) -> int:
    """
    Run every planned section and print the successful ones.

    A failed section is logged and does not stop the sections after it.

    Returns:
        0 when all sections succeeded, 1 otherwise.
    """
    failed = []
    for name in plan_sections(options):
        result = run_section(name, probe)
        if not result.ok:
            logger.error("%s report failed: %s", name, result.error)
            failed.append(name)
            continue
        for line in result.lines:
            print(line, file=out)

    if failed:
        logger.error("failed sections: %s", ", ".join(failed))
        return 1
    return 0


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for machineinfo."""
    options = parse_options(argv)
    configure_logging(options.verbose)
    sys.exit(dispatch(options, HostProbe(), sys.stdout))


if __name__ == "__main__":
    main()
