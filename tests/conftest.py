"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit        - No external deps
    @pytest.mark.integration - Full app wired through TestClient
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from oasparams.spec.document import load_document
from oasparams.spec.parameter import (
    OperationSpec,
    ParameterLocation,
    ParameterSpec,
    ParameterType,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def petstore_document() -> dict[str, Any]:
    return load_document(FIXTURES / "petstore.yml")


@pytest.fixture
def login_operation() -> OperationSpec:
    """GET /v2/user/login with two required query parameters."""
    return OperationSpec(
        operation_id="loginUser",
        method="GET",
        path="/v2/user/login",
        parameters=(
            ParameterSpec("username", ParameterLocation.QUERY, ParameterType.STRING, required=True),
            ParameterSpec("password", ParameterLocation.QUERY, ParameterType.STRING, required=True),
        ),
    )


@pytest.fixture
def member_specs() -> list[ParameterSpec]:
    return [
        ParameterSpec("nickname", type=ParameterType.STRING),
        ParameterSpec("age", type=ParameterType.INTEGER, format="int32"),
        ParameterSpec("loves_apples", type=ParameterType.BOOLEAN),
        ParameterSpec("height", type=ParameterType.NUMBER, format="float"),
    ]
