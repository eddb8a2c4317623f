"""
Long-term-plan MCP server entry point.

Startup sequence:
1. Read PLAN_ROOT and PLANS_DIR from environment
2. Build the PlanConfig shared by every tool and route
3. Register all MCP tools
4. Start REST API server in background thread (if API_ENABLED)
5. Run MCP server (stdio transport)

Nothing is cached between calls: every tool re-reads the plan file, so
several server processes (or editors) can share one plans directory.
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from storage.plan_store import PlanConfig, resolve_plans_dir
from tools import register_doc_tools, register_plan_tools, register_task_tools
from utils.formatting import DEFAULT_PLANS_DIR

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)
log = logging.getLogger(__name__)

DEFAULT_API_PORT = 9410


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def _start_api_server(config: PlanConfig, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from api.app import create_app

    app = create_app(config)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")


def build_server(config: PlanConfig) -> FastMCP:
    """Create the FastMCP instance with every plan, task and doc tool registered."""
    mcp = FastMCP("long-term-plan-mcp")
    register_plan_tools(mcp, config)
    register_task_tools(mcp, config)
    register_doc_tools(mcp, config)
    return mcp


def main() -> None:
    plan_root = Path(os.environ.get("PLAN_ROOT") or os.getcwd())
    if not plan_root.is_dir():
        log.error("PLAN_ROOT does not exist or is not a directory: %s", plan_root)
        sys.exit(1)

    config = PlanConfig(root_dir=plan_root, plans_dir=os.environ.get("PLANS_DIR", DEFAULT_PLANS_DIR))
    log.info("Plan root: %s", config.root)
    log.info("Plans dir: %s", resolve_plans_dir(config))

    if _env_flag("API_ENABLED"):
        api_port = int(os.environ.get("API_PORT", str(DEFAULT_API_PORT)))
        api_thread = threading.Thread(
            target=_start_api_server, args=(config, api_port), daemon=True
        )
        api_thread.start()

    mcp = build_server(config)
    log.info("Starting long-term-plan-mcp server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
