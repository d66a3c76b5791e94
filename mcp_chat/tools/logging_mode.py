"""
Verbosity tools.

The tool host keeps one process-wide logging mode that the model can read
and change. In quiet mode the host only logs warnings.
"""

import logging

from .registry import HostParam, HostTool, tool_registry

VALID_MODES = ("verbose", "quiet")

_state = {"mode": "verbose"}


def set_logging_mode(mode: str) -> dict:
    if mode not in VALID_MODES:
        return {
            "success": False,
            "mode": _state["mode"],
            "error": "Mode must be either 'verbose' or 'quiet'",
        }
    _state["mode"] = mode
    logging.getLogger("mcp_chat").setLevel(
        logging.INFO if mode == "verbose" else logging.WARNING
    )
    return {"success": True, "mode": mode, "error": None}


def get_logging_mode() -> dict:
    return {"success": True, "mode": _state["mode"], "error": None}


def _describe(mode: str) -> str:
    if mode == "verbose":
        return "Showing detailed process steps."
    return "Returning only final answers."


def format_set_result(result: dict) -> str:
    if not result["success"]:
        return f"Error: {result['error']}"
    return f"Logging mode set to: {result['mode']}. {_describe(result['mode'])}"


def format_get_result(result: dict) -> str:
    return f"Current logging mode: {result['mode']}. {_describe(result['mode'])}"


tool_registry.register(
    HostTool(
        name="set_logging_mode",
        description=(
            "Control the verbosity of responses - choose between verbose "
            "logging or concise answers"
        ),
        handler=lambda params: set_logging_mode(str(params.get("mode") or "")),
        formatter=format_set_result,
        params=(
            HostParam(
                "mode",
                "Logging mode: 'verbose' shows detailed process steps, "
                "'quiet' returns only final answers",
                required=True,
                choices=VALID_MODES,
            ),
        ),
    )
)
tool_registry.register(
    HostTool(
        name="get_logging_mode",
        description="Get the current logging mode setting",
        handler=lambda params: get_logging_mode(),
        formatter=format_get_result,
    )
)
