"""Run machineinfo as a module."""

from machineinfo.cli import main

main()
