"""
Task tools.

Thin wrappers over operations.tasks; each one resolves the default plan
("active-plan") when plan_id is omitted.
"""

from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from operations.tasks import add_task, delete_task, get_task, search_tasks, update_task
from storage.plan_store import PlanConfig
from tools.common import run_tool, with_default_plan


def register_task_tools(mcp: FastMCP, config: PlanConfig) -> None:
    """Register all task-related MCP tools onto the FastMCP instance."""

    @mcp.tool()
    def task_get(
        plan_id: Optional[str] = None,
        task_id: Optional[str] = None,
        include_body: bool = True,
    ) -> str:
        """
        Get a single task.

        If task_id is omitted, returns the first "doing" task, otherwise the
        first unfinished task.

        Args:
            plan_id: Plan id (default plan when omitted)
            task_id: Task id (e.g. "t_9f1c...")
            include_body: Include the task body markdown, if any

        Returns:
            JSON object {"task": {...}, "etag": "..."}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: get_task(
            config, pid, task_id, include_body=include_body,
        )))

    @mcp.tool()
    def task_add(
        title: str,
        plan_id: Optional[str] = None,
        status: str = "todo",
        section_path: Optional[List[str]] = None,
        parent_task_id: Optional[str] = None,
        before_task_id: Optional[str] = None,
        body_markdown: Optional[str] = None,
        if_match: Optional[str] = None,
    ) -> str:
        """
        Add a task to a plan. The task gets a fresh unique id.

        Placement: before_task_id (as a sibling), else as the last child of
        parent_task_id, else at the end of section_path (created if missing),
        else at the end of the file.

        Args:
            title: Task title (single line, no HTML comments)
            plan_id: Plan id (default plan when omitted)
            status: "todo", "doing" or "done"
            section_path: Heading texts below the title, e.g. ["Inbox"]
            parent_task_id: Nest under this task
            before_task_id: Insert immediately before this task
            body_markdown: Optional free-form body stored under the task
            if_match: Etag from a previous read

        Returns:
            JSON object {task_id, etag}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: add_task(
            config,
            pid,
            title,
            status=status,
            section_path=section_path,
            parent_task_id=parent_task_id,
            before_task_id=before_task_id,
            body_markdown=body_markdown,
            if_match=if_match,
        )))

    @mcp.tool()
    def task_update(
        plan_id: Optional[str] = None,
        task_id: Optional[str] = None,
        status: Optional[str] = None,
        title: Optional[str] = None,
        body_markdown: Optional[str] = None,
        clear_body: bool = False,
        allow_default_target: bool = False,
        if_match: Optional[str] = None,
    ) -> str:
        """
        Update a task in place (minimal diff).

        If task_id is omitted, allow_default_target=True and if_match are both
        required; the current "doing" task is targeted, else the first
        unfinished one. Several "doing" tasks make the target ambiguous.

        Args:
            plan_id: Plan id (default plan when omitted)
            task_id: Task id
            status: New status: "todo", "doing" or "done"
            title: New title
            body_markdown: New body (replaces any existing body)
            clear_body: Remove the task body
            allow_default_target: Permit targeting the default task
            if_match: Etag from a previous read

        Returns:
            JSON object {task_id, etag, changed}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: update_task(
            config,
            pid,
            task_id,
            status=status,
            title=title,
            body_markdown=body_markdown,
            clear_body=clear_body,
            allow_default_target=allow_default_target,
            if_match=if_match,
        )))

    @mcp.tool()
    def task_start(task_id: str, plan_id: Optional[str] = None, if_match: Optional[str] = None) -> str:
        """Mark a task as "doing"."""
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: update_task(
            config, pid, task_id, status="doing", if_match=if_match,
        )))

    @mcp.tool()
    def task_complete(task_id: str, plan_id: Optional[str] = None, if_match: Optional[str] = None) -> str:
        """Mark a task as "done"."""
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: update_task(
            config, pid, task_id, status="done", if_match=if_match,
        )))

    @mcp.tool()
    def task_delete(task_id: str, plan_id: Optional[str] = None, if_match: Optional[str] = None) -> str:
        """
        Delete a task together with its body and all nested tasks.

        Args:
            task_id: Task id
            plan_id: Plan id (default plan when omitted)
            if_match: Etag from a previous read

        Returns:
            JSON object {task_id, etag}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: delete_task(
            config, pid, task_id, if_match=if_match,
        )))

    @mcp.tool()
    def task_search(
        query: str,
        plan_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
    ) -> str:
        """
        Search task titles (case-insensitive substring).

        Args:
            query: Text to look for in task titles
            plan_id: Restrict to one plan; searches every plan when omitted
            status: Only return tasks with this status
            limit: Maximum number of hits (1-500, default 50)

        Returns:
            JSON object {"hits": [{plan_id, task_id, title, status, section_path}]}
        """
        return run_tool(lambda: {"hits": search_tasks(
            config, query, status=status, plan_id=plan_id, limit=limit,
        )})
