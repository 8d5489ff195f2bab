"""Swagger 2.0 document walker tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from oasparams.spec.document import load_document, operations_from_document
from oasparams.spec.parameter import ParameterLocation, ParameterType

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def operations(petstore_document: dict[str, Any]) -> dict[str, Any]:
    return {op.operation_id: op for op in operations_from_document(petstore_document)}


class TestLoadDocument:
    def test_loads_yaml(self, petstore_document: dict[str, Any]) -> None:
        assert petstore_document["swagger"] == "2.0"
        assert "/user/login" in petstore_document["paths"]

    def test_loads_json(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"
        path.write_text('{"swagger": "2.0", "paths": {}}', encoding="utf-8")
        assert load_document(path) == {"swagger": "2.0", "paths": {}}

    def test_non_mapping_root_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.yml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_document(path)


class TestOperationsFromDocument:
    def test_every_operation_found(self, operations: dict[str, Any]) -> None:
        assert set(operations) == {"addPet", "findPetsByTags", "getPetById", "loginUser"}

    def test_base_path_prefixed(self, operations: dict[str, Any]) -> None:
        assert operations["loginUser"].path == "/v2/user/login"
        assert operations["loginUser"].method == "GET"

    def test_login_parameters_in_order(self, operations: dict[str, Any]) -> None:
        names = [p.name for p in operations["loginUser"].parameters]
        assert names == ["username", "password"]

    def test_header_and_body_params_dropped(self, operations: dict[str, Any]) -> None:
        assert [p.name for p in operations["addPet"].parameters] == ["debug"]

    def test_path_level_params_merged(self, operations: dict[str, Any]) -> None:
        params = {p.name: p for p in operations["getPetById"].parameters}
        assert set(params) == {"petId", "debug"}
        assert params["petId"].location is ParameterLocation.PATH
        assert params["petId"].type is ParameterType.INTEGER
        assert params["petId"].format == "int64"

    def test_operation_overrides_path_level_param(self) -> None:
        doc = {
            "paths": {
                "/items/{id}": {
                    "parameters": [{"name": "id", "in": "path", "type": "string"}],
                    "get": {
                        "operationId": "getItem",
                        "parameters": [{"name": "id", "in": "path", "type": "integer"}],
                    },
                }
            }
        }
        (op,) = list(operations_from_document(doc))
        assert len(op.parameters) == 1
        assert op.parameters[0].type is ParameterType.INTEGER

    def test_missing_operation_id_synthesised(self) -> None:
        doc = {"basePath": "/api/", "paths": {"/ping": {"get": {}}}}
        (op,) = list(operations_from_document(doc))
        assert op.operation_id == "GET /api/ping"
        assert op.path == "/api/ping"

    def test_unresolved_ref_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        doc = {
            "paths": {
                "/x": {
                    "get": {
                        "operationId": "x",
                        "parameters": [{"$ref": "#/parameters/limit"}],
                    }
                }
            }
        }
        (op,) = list(operations_from_document(doc))
        assert op.parameters == ()
        assert "#/parameters/limit" in caplog.text

    def test_default_carried(self, operations: dict[str, Any]) -> None:
        limit = operations["findPetsByTags"].parameter("limit")
        assert limit.default == 10
