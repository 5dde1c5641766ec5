"""Record the configuration of the process at startup."""

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import TypedDict

from git import InvalidGitRepositoryError
from git import NoSuchPathError
from git import Repo

from ..settings.settings import SETTINGS
from .settings import DUMP_ALL_CONFIG


class GitInfo(TypedDict):
    "Git repository details for get_git_info()."

    repo: Path | None
    commit: str | None
    branch: str | None
    dirty: bool | None


def str_or_na(v: object) -> str:
    "Convert a value to a string, printing None as N/A."
    return "N/A" if v is None else str(v)


def get_git_info(path: Path | None = None) -> GitInfo:
    """
    Describe the Git repository containing path (default: this source file).

    Every field is None if there is no repository, and branch is None for a detached HEAD.
    """
    result: GitInfo = {"repo": None, "commit": None, "branch": None, "dirty": None}
    try:
        repo = Repo(path or Path(__file__), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return result

    result["repo"] = Path(repo.git_dir)
    result["dirty"] = repo.is_dirty()
    try:
        result["commit"] = repo.head.commit.hexsha
        result["branch"] = repo.active_branch.name
    except (TypeError, ValueError):
        # detached HEAD, or a repository without commits
        pass
    return result


def get_pip_info() -> list[str]:
    """
    List the installed Python packages.
    """
    return subprocess.run(
        [sys.executable, "-m", "pip", "freeze"], check=True, capture_output=True, text=True
    ).stdout.splitlines()


def censor(name: str, value: object) -> object:
    "Hide most of a string setting's value if its name suggests it is a secret."
    if "key" in name.lower() and isinstance(value, str):
        visible = len(value) // 4
        return value[:visible] + "*" * (len(value) - visible)
    return value


def dump_config(log: logging.Logger) -> None:
    """
    Log the current configuration and environment of the process.

    Must be called after logging is initialized and settings are loaded.
    Settings whose name contains "key" are censored.
    """

    log_lines = [
        "Process configuration:",
        f"    Command line: {shlex.join(sys.argv)}",
        f"    Python: {sys.executable}",
        f"    Working dir: {os.getcwd()}",
    ]
    log.info("\n".join(log_lines))

    git_info = get_git_info()
    log_lines = [
        "Git info:",
        f"    Repository: {str_or_na(git_info['repo'])}",
        f"    Branch: {str_or_na(git_info['branch'])}",
        f"    Commit: {str_or_na(git_info['commit'])}",
        f"    Dirty: {str_or_na(git_info['dirty'])}",
    ]
    log.info("\n".join(log_lines))

    if DUMP_ALL_CONFIG.get():
        # pip takes about half a second, which interactive users might dislike
        log.info(f"Installed Python packages: {shlex.join(get_pip_info())}")

    log_lines = ["Effective settings:"]
    for name, value in sorted(SETTINGS.values.items()):
        log_lines.append(f"    {name}: {censor(name, value)}")
    log.info("\n".join(log_lines))
