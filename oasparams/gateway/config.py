"""Gateway configuration.

Environment variables (all optional):
    OAS_PROBLEM_STATUS   status code of the default JSON problem response (400)
    OAS_CHECK_DEFAULTS   reject mistyped defaults at registration (true)
    OAS_LOG_PROBLEMS     log every rejected request (true)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from oasparams.binding.coercion import CoercionError, parse_scalar
from oasparams.spec.parameter import ParameterType


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return parse_scalar(raw, ParameterType.BOOLEAN)
    except CoercionError:
        msg = f"{key} must be a boolean, got {raw!r}"
        raise ValueError(msg) from None


@dataclass(frozen=True)
class GatewayConfig:
    """Configuration for the validation gateway."""

    problem_status_code: int = 400
    check_defaults: bool = True
    log_problems: bool = True

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GatewayConfig:
        env = os.environ if env is None else env
        status_raw = env.get("OAS_PROBLEM_STATUS", "").strip()
        try:
            status = int(status_raw) if status_raw else cls.problem_status_code
        except ValueError:
            msg = f"OAS_PROBLEM_STATUS must be an integer, got {status_raw!r}"
            raise ValueError(msg) from None
        if not 400 <= status <= 499:
            msg = f"OAS_PROBLEM_STATUS must be a 4xx status, got {status}"
            raise ValueError(msg)
        return cls(
            problem_status_code=status,
            check_defaults=_env_bool(env, "OAS_CHECK_DEFAULTS", cls.check_defaults),
            log_problems=_env_bool(env, "OAS_LOG_PROBLEMS", cls.log_problems),
        )
