"""
Тесты загрузки спецификаций
"""

import json

import pytest

from openapi_runtime.exceptions import SpecificationError
from openapi_runtime.internal.parser.openapi import load_and_validate_schema

PETSTORE_YAML = """
swagger: 2.0
host: api.example.com:8080
basePath: /api/
schemes: [ "http" ]
paths:
  /foo:
    get:
      operationId: listPets
      parameters:
      - name: limit
        in: query
        type: integer
      responses:
        200: { description: OK }
"""


class TestLoading:
    """Тесты загрузки из разных источников"""

    def test_yaml_file(self, tmp_path):
        """Тест загрузки YAML"""
        path = tmp_path / "api.yaml"
        path.write_text(PETSTORE_YAML)

        accessor = load_and_validate_schema(str(path))

        assert accessor.get("/host") == "api.example.com:8080"
        assert str(accessor.default_base_url()) == "http://api.example.com:8080/api"

    def test_file_url(self, petstore_file):
        """Тест загрузки по file:// URL"""
        accessor = load_and_validate_schema(petstore_file.as_uri())

        assert accessor.get("/paths/~1pets/get/operationId") == "listPets"

    def test_refs_resolved(self, petstore):
        """Тест разрешения $ref"""
        accessor = load_and_validate_schema(petstore)

        schema = accessor.get("/paths/~1pets/post/parameters/1/schema")
        assert schema["required"] == ["name"]

    def test_external_ref(self, tmp_path, petstore):
        """Тест $ref на другой файл"""
        (tmp_path / "definitions.json").write_text(
            json.dumps({"Pet": petstore["definitions"]["Pet"]})
        )
        petstore["paths"]["/pets"]["post"]["parameters"][1]["schema"] = {
            "$ref": "definitions.json#/Pet"
        }
        path = tmp_path / "api.json"
        path.write_text(json.dumps(petstore))

        accessor = load_and_validate_schema(str(path))

        schema = accessor.get("/paths/~1pets/post/parameters/1/schema")
        assert schema["properties"]["name"] == {"type": "string"}

    def test_inline_document_is_copied(self, petstore):
        """Тест: исходный словарь не изменяется"""
        load_and_validate_schema(petstore)

        assert petstore["paths"]["/pets"]["post"]["parameters"][1]["schema"] == {
            "$ref": "#/definitions/Pet"
        }


class TestInvalidSpecification:
    """Тесты ошибок спецификации"""

    def test_missing_file(self, tmp_path):
        """Тест отсутствующего файла"""
        with pytest.raises(SpecificationError):
            load_and_validate_schema(str(tmp_path / "nope.json"))

    def test_broken_json(self, tmp_path):
        """Тест некорректного JSON"""
        path = tmp_path / "api.json"
        path.write_text("{not json")

        with pytest.raises(SpecificationError):
            load_and_validate_schema(str(path))

    def test_missing_version(self, petstore):
        """Тест документа без swagger/openapi"""
        del petstore["swagger"]

        with pytest.raises(SpecificationError):
            load_and_validate_schema(petstore)

    def test_invalid_parameter_location(self, petstore):
        """Тест параметра с неизвестным расположением"""
        petstore["paths"]["/pets"]["get"]["parameters"][0]["in"] = "nowhere"

        with pytest.raises(SpecificationError):
            load_and_validate_schema(petstore)

    def test_parameter_without_name(self, petstore):
        """Тест параметра без имени"""
        del petstore["paths"]["/pets"]["get"]["parameters"][0]["name"]

        with pytest.raises(SpecificationError):
            load_and_validate_schema(petstore)

    def test_unresolvable_ref(self, petstore):
        """Тест ссылки на несуществующее определение"""
        petstore["paths"]["/pets"]["post"]["parameters"][1]["schema"] = {
            "$ref": "#/definitions/Missing"
        }

        with pytest.raises(SpecificationError):
            load_and_validate_schema(petstore)

    def test_non_object_root(self, tmp_path):
        """Тест документа, не являющегося объектом"""
        path = tmp_path / "api.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(SpecificationError):
            load_and_validate_schema(str(path))


class TestSchemaAccessor:
    """Тесты доступа к спецификации"""

    def test_get_pointer(self, petstore):
        """Тест чтения по JSON pointer"""
        accessor = load_and_validate_schema(petstore)

        assert accessor.get("/schemes/0") == "https"
        assert accessor.get("/basePath") == "/api"
        assert accessor.get("/missing/key") is None
        assert accessor.get("/schemes/5") is None

    def test_default_base_url(self, petstore):
        """Тест базового URL из host/basePath/schemes"""
        accessor = load_and_validate_schema(petstore)

        assert str(accessor.default_base_url()) == "https://api.example.com/api"

    def test_default_base_url_without_host(self, petstore):
        """Тест базового URL без host"""
        del petstore["host"]
        del petstore["schemes"]

        assert str(load_and_validate_schema(petstore).default_base_url()) == (
            "http://localhost/api"
        )

    def test_openapi3_server(self, openapi3):
        """Тест базового URL из servers"""
        accessor = load_and_validate_schema(openapi3)

        assert str(accessor.default_base_url()) == (
            "https://eu.notes.example.com:8443/v1"
        )

    def test_validate_file_type(self, petstore):
        """Тест проверки значения типа file"""
        accessor = load_and_validate_schema(petstore)
        schema = {"type": "object", "properties": {"f": {"type": "file"}}}

        assert accessor.validate({"f": b"data"}, schema) == []
        assert [e.path for e in accessor.validate({"f": 1}, schema)] == ["/f"]

    def test_validate(self, petstore):
        """Тест проверки значения по схеме"""
        accessor = load_and_validate_schema(petstore)
        schema = {"type": "object", "properties": {"n": {"type": "integer"}}}

        assert accessor.validate({"n": 1}, schema) == []
        errors = accessor.validate({"n": "x"}, schema)
        assert [str(e) for e in errors] == ["/n: 'x' is not of type 'integer'"]
