"""Utility module for mlogin."""

from .shell import ShellResult, Runner, run, make_runner
from .process import run_tool
from .host import launch_domain

__all__ = ["ShellResult", "Runner", "run", "make_runner", "run_tool", "launch_domain"]
