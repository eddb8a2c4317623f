"""Plan tools: list, get, create and update plan documents."""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from operations.plans import create_plan, get_plan, list_plans, update_plan
from storage.plan_store import PlanConfig
from tools.common import run_tool, with_default_plan


def register_plan_tools(mcp: FastMCP, config: PlanConfig) -> None:
    """Register all plan-level MCP tools onto the FastMCP instance."""

    @mcp.tool()
    def plan_list(query: Optional[str] = None) -> str:
        """
        List plan files under the plans directory.

        Args:
            query: Case-insensitive substring matched against plan id and title

        Returns:
            JSON object {"plans": [{plan_id, title, path, stats}]}
        """
        return run_tool(lambda: {"plans": list_plans(config, query=query)})

    @mcp.tool()
    def plan_get(
        plan_id: Optional[str] = None,
        view: str = "tree",
        include_plan_body: bool = False,
        include_task_bodies: bool = False,
    ) -> str:
        """
        Read and parse a plan. Omit plan_id to use "active-plan".

        Args:
            plan_id: Plan id (the file name without .md)
            view: "tree" (nested children) or "flat" (document order)
            include_plan_body: Include the plan body markdown, if any
            include_task_bodies: Include each task's body markdown, if any

        Returns:
            JSON object {"plan": {...}, "etag": "..."}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: get_plan(
            config,
            pid,
            view=view,
            include_plan_body=include_plan_body,
            include_task_bodies=include_task_bodies,
        )))

    @mcp.tool()
    def plan_create(title: str, plan_id: Optional[str] = None, template: str = "basic") -> str:
        """
        Create a new plan file. Fails if the plan already exists.

        Args:
            title: Plan title (the level-1 heading)
            plan_id: Plan id; derived from the title when omitted
            template: "basic" (adds an Inbox section) or "empty"

        Returns:
            JSON object {plan_id, path, etag}
        """
        return run_tool(lambda: create_plan(config, title, plan_id=plan_id, template=template))

    @mcp.tool()
    def plan_update(
        plan_id: Optional[str] = None,
        title: Optional[str] = None,
        body_markdown: Optional[str] = None,
        clear_body: bool = False,
        if_match: Optional[str] = None,
    ) -> str:
        """
        Update the plan title and/or the plan body in place.

        Args:
            plan_id: Plan id (default plan when omitted)
            title: New plan title
            body_markdown: New plan body (replaces any existing body)
            clear_body: Remove the plan body
            if_match: Etag from a previous read; the update fails if the file changed since

        Returns:
            JSON object {plan_id, etag, changed}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: update_plan(
            config,
            pid,
            title=title,
            body_markdown=body_markdown,
            clear_body=clear_body,
            if_match=if_match,
        )))
