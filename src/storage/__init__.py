from .plan_store import (
    PlanConfig,
    PlanFile,
    create_file_exclusive,
    iter_plan_paths,
    read_plan_file,
    relative_to_root,
    resolve_plan_path,
    resolve_plans_dir,
    sha256_hex,
    write_file_atomic,
)

__all__ = [
    "PlanConfig",
    "PlanFile",
    "create_file_exclusive",
    "iter_plan_paths",
    "read_plan_file",
    "relative_to_root",
    "resolve_plan_path",
    "resolve_plans_dir",
    "sha256_hex",
    "write_file_atomic",
]
