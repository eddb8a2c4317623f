"""Document tools: validate and repair plan markdown."""

from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from operations.docs import repair_plan_doc, validate_plan_doc
from storage.plan_store import PlanConfig
from tools.common import run_tool, with_default_plan


def register_doc_tools(mcp: FastMCP, config: PlanConfig) -> None:
    """Register validation and repair tools onto the FastMCP instance."""

    @mcp.tool()
    def doc_validate(plan_id: Optional[str] = None) -> str:
        """
        Validate a plan against the long-term-plan-md v1 format.

        Returns:
            JSON object {errors: [{code, message, line?}], warnings: [...]}; lines are 1-based
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: validate_plan_doc(config, pid)))

    @mcp.tool()
    def doc_repair(
        actions: List[str],
        plan_id: Optional[str] = None,
        dry_run: bool = False,
        if_match: Optional[str] = None,
    ) -> str:
        """
        Apply explicit, conservative repairs to a plan.

        Args:
            actions: Any of "addFormatHeader", "addMissingIds", applied in order
            plan_id: Plan id (default plan when omitted)
            dry_run: Compute the result and its etag without writing
            if_match: Etag from a previous read

        Returns:
            JSON object {etag, applied: {add_format_header, add_missing_ids}, dry_run}
        """
        return run_tool(lambda: with_default_plan(config, plan_id, lambda pid: repair_plan_doc(
            config, pid, actions, dry_run=dry_run, if_match=if_match,
        )))
