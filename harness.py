"""
Interactive harness for exercising plan operations without MCP integration.

Usage:
    python harness.py <PLAN_ROOT> [--plans-dir .long-term-plan]

Runs a quick smoke test over every plan in the plans directory, then drops
you into a REPL that calls the orchestration functions directly.
"""

import json
import sys
from pathlib import Path

# Add src/ to path so imports work
sys.path.insert(0, str(Path(__file__).parent / "src"))

from models.errors import PlanError
from operations import (
    get_plan,
    get_task,
    list_plans,
    repair_plan_doc,
    search_tasks,
    update_task,
    validate_plan_doc,
)
from storage.plan_store import PlanConfig, resolve_plans_dir
from utils.formatting import DEFAULT_PLANS_DIR


def smoke_test(config: PlanConfig) -> None:
    """Quick automated checks: list, parse and validate every plan."""
    print("\n=== Smoke Test ===")
    print(f"  Plan root:  {config.root}")
    print(f"  Plans dir:  {resolve_plans_dir(config)}")

    plans = list_plans(config)
    print(f"\n  Plans ({len(plans)}):")
    for p in plans:
        s = p["stats"]
        print(f"    {p['plan_id']:30s} {s['done']}/{s['total']} done, {s['doing']} doing  {p['title']}")

    for p in plans:
        report = validate_plan_doc(config, p["plan_id"])
        if report["errors"]:
            print(f"\n  {p['plan_id']}: {len(report['errors'])} error(s)")
            for d in report["errors"][:5]:
                print(f"    {d['code']}@{d.get('line', '-')}: {d['message']}")
            continue
        try:
            task = get_task(config, p["plan_id"], include_body=False)["task"]
            print(f"\n  {p['plan_id']}: current task [{task['status']}] {task['id']} {task['title']}")
        except PlanError as e:
            print(f"\n  {p['plan_id']}: {e}")

    print("\n=== Smoke Test Complete ===\n")


def _print_tree(tasks, depth: int = 0) -> None:
    for t in tasks:
        body = " (body)" if t["has_body"] else ""
        print(f"  {'  ' * depth}[{t['status']:5s}] {t['id']} {t['title']}{body}")
        _print_tree(t.get("children", []), depth + 1)


def repl(config: PlanConfig) -> None:
    """Simple REPL for interactive exploration."""
    print("Interactive mode. Type 'help' for commands, 'quit' to exit.\n")

    commands = {
        "help":     "Show this help",
        "plans":    "List plans. Usage: plans [query]",
        "plan":     "Show a plan's task tree. Usage: plan <plan_id>",
        "task":     "Show a task (current task when id omitted). Usage: task <plan_id> [task_id]",
        "find":     "Search task titles in every plan. Usage: find <substring>",
        "status":   "Set a task's status. Usage: status <plan_id> <task_id> <todo|doing|done>",
        "validate": "Validate a plan. Usage: validate <plan_id>",
        "repair":   "Dry-run both repairs on a plan. Usage: repair <plan_id>",
        "quit":     "Exit",
    }

    while True:
        try:
            line = input("long-term-plan> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue

        parts = line.split()
        cmd = parts[0].lower()

        if cmd == "quit" or cmd == "exit":
            break

        try:
            if cmd == "help":
                for k, v in commands.items():
                    print(f"  {k:12s} {v}")

            elif cmd == "plans":
                query = " ".join(parts[1:]) or None
                for p in list_plans(config, query=query):
                    print(f"  {p['plan_id']:30s} {p['path']}  {p['title']}")

            elif cmd == "plan":
                if len(parts) < 2:
                    print("Usage: plan <plan_id>")
                    continue
                result = get_plan(config, parts[1])
                plan = result["plan"]
                print(f"  {plan['title']}  etag={result['etag'][:12]}  stats={plan['stats']}")
                _print_tree(plan["tasks"])

            elif cmd == "task":
                if len(parts) < 2:
                    print("Usage: task <plan_id> [task_id]")
                    continue
                task_id = parts[2] if len(parts) > 2 else None
                print(json.dumps(get_task(config, parts[1], task_id), indent=2, ensure_ascii=False))

            elif cmd == "find":
                if len(parts) < 2:
                    print("Usage: find <substring>")
                    continue
                hits = search_tasks(config, " ".join(parts[1:]), limit=500)
                print(f"Found {len(hits)} matching tasks:")
                for h in hits:
                    print(f"  [{h['status']:5s}] {h['plan_id']}/{h['task_id']} {h['title']}")

            elif cmd == "status":
                if len(parts) < 4:
                    print("Usage: status <plan_id> <task_id> <todo|doing|done>")
                    continue
                print(json.dumps(update_task(config, parts[1], parts[2], status=parts[3]), indent=2))

            elif cmd == "validate":
                if len(parts) < 2:
                    print("Usage: validate <plan_id>")
                    continue
                print(json.dumps(validate_plan_doc(config, parts[1]), indent=2, ensure_ascii=False))

            elif cmd == "repair":
                if len(parts) < 2:
                    print("Usage: repair <plan_id>")
                    continue
                result = repair_plan_doc(
                    config, parts[1], ["addFormatHeader", "addMissingIds"], dry_run=True
                )
                print(json.dumps(result, indent=2))

            else:
                print(f"Unknown command: {cmd}. Type 'help' for available commands.")
        except PlanError as e:
            print(f"  {e.code}: {e}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python harness.py <PLAN_ROOT> [--plans-dir .long-term-plan]")
        sys.exit(1)

    plan_root = Path(sys.argv[1]).resolve()
    if not plan_root.is_dir():
        print(f"Error: {plan_root} is not a directory")
        sys.exit(1)

    plans_dir = DEFAULT_PLANS_DIR
    args = sys.argv[2:]
    if "--plans-dir" in args:
        index = args.index("--plans-dir")
        if index + 1 < len(args):
            plans_dir = args[index + 1]

    config = PlanConfig(root_dir=plan_root, plans_dir=plans_dir)
    smoke_test(config)
    repl(config)

    print("Done.")


if __name__ == "__main__":
    main()
