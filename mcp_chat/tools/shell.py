"""
Shell command execution tool.

Runs a command through ``/bin/sh`` on the tool host's machine. There is no
sandboxing; only expose this host to trusted models.
"""

import logging
import subprocess

from .registry import HostParam, HostTool, tool_registry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


def execute_bash(command: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> dict:
    """
    Execute a shell command and capture its output.

    Args:
        command: Command line to run
        timeout_seconds: Maximum execution time

    Returns:
        Dictionary with command, stdout, stderr, exit code and error
    """
    if not command or not command.strip():
        return {
            "success": False,
            "command": command,
            "stdout": "",
            "stderr": "",
            "exit_code": None,
            "error": "Command is required",
        }

    try:
        completed = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout_seconds}s: {command}")
        return {
            "success": False,
            "command": command,
            "stdout": "",
            "stderr": "",
            "exit_code": None,
            "error": f"Command timed out after {timeout_seconds} seconds",
        }
    except OSError as e:
        logger.error(f"Failed to start command {command!r}: {e}")
        return {
            "success": False,
            "command": command,
            "stdout": "",
            "stderr": "",
            "exit_code": None,
            "error": str(e),
        }

    error = None
    if completed.returncode != 0:
        error = f"Process exited with code {completed.returncode}"

    return {
        "success": completed.returncode == 0,
        "command": command,
        "stdout": completed.stdout,
        "stderr": completed.stderr,
        "exit_code": completed.returncode,
        "error": error,
    }


def format_result_for_llm(result: dict) -> str:
    """Format a command result the way the model sees it."""
    lines = [f"Command: {result['command']}"]
    if result["stdout"] or result["success"]:
        lines.append(f"Output:\n{result['stdout']}")
    if result["stderr"]:
        lines.append(f"Error:\n{result['stderr']}")
    if result["error"] and not result["stderr"]:
        lines.append(f"Error: {result['error']}")
    return "\n".join(lines)


tool_registry.register(
    HostTool(
        name="execute_bash",
        description="Executes a bash command and returns the output",
        handler=lambda params: execute_bash(str(params.get("command") or "")),
        formatter=format_result_for_llm,
        params=(HostParam("command", "The bash command to execute", required=True),),
    )
)
