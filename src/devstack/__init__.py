from .config import EnvConfig, Settings, bootstrap_env_file
from .dsl import op, sh, registry, command_action
from .model import ActionContext, Operation, Step
from .runner import Runner, RunResult, load_operations

__all__ = [
    "op", "sh", "registry", "command_action",
    "Operation", "Step", "ActionContext",
    "Runner", "RunResult", "load_operations",
    "EnvConfig", "Settings", "bootstrap_env_file",
]
