import copy
import json

import pytest

PETSTORE = {
    "swagger": "2.0",
    "info": {"title": "Pets", "version": "1.0.0"},
    "host": "api.example.com",
    "basePath": "/api",
    "schemes": ["https", "http"],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List pets",
                "parameters": [
                    {"name": "limit", "in": "query", "type": "integer"},
                    {
                        "name": "tags",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "string"},
                    },
                ],
                "responses": {"200": {"description": "OK"}},
            },
            "post": {
                "operationId": "add-pet",
                "parameters": [
                    {
                        "name": "X-Request-Id",
                        "in": "header",
                        "type": "string",
                        "required": True,
                    },
                    {
                        "name": "pet",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/Pet"},
                    },
                ],
                "responses": {"201": {"description": "Created"}},
            },
        },
        "/pets/{id}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "type": "integer"}
            ],
            "get": {
                "operationId": "getPet",
                "parameters": [{"name": "limit", "in": "query", "type": "integer"}],
                "responses": {"200": {"description": "OK"}},
            },
            "put": {
                "operationId": "updatePet",
                "parameters": [
                    {"name": "X-Trace", "in": "header", "type": "string"},
                    {"name": "q", "in": "query", "type": "string"},
                    {"name": "pet", "in": "body", "schema": {"$ref": "#/definitions/Pet"}},
                ],
                "responses": {"200": {"description": "OK"}},
            },
            "delete": {
                "summary": "Operation without operationId",
                "responses": {"204": {"description": "Deleted"}},
            },
        },
        "/pets/{id}/photo": {
            "post": {
                "operationId": "uploadPhoto",
                "consumes": ["application/x-www-form-urlencoded"],
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "type": "integer"},
                    {"name": "caption", "in": "formData", "type": "string", "maxLength": 10},
                    {
                        "name": "flags",
                        "in": "formData",
                        "type": "array",
                        "items": {"type": "string"},
                    },
                ],
                "responses": {"200": {"description": "OK"}},
            }
        },
        "/pets/{id}/avatar": {
            "post": {
                "operationId": "uploadAvatar",
                "consumes": ["multipart/form-data"],
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "type": "integer"},
                    {"name": "file", "in": "formData", "required": True, "type": "file"},
                    {"name": "note", "in": "formData", "type": "string"},
                ],
                "responses": {"200": {"description": "OK"}},
            }
        },
        "/search": {
            "get": {
                "operationId": "search",
                "parameters": [
                    {"name": "callback", "in": "query", "type": "string"},
                    {"name": "params", "in": "query", "type": "string"},
                ],
                "responses": {"200": {"description": "OK"}},
            }
        },
        "/notes/{name}": {
            "put": {
                "operationId": "putNote",
                "parameters": [
                    {"name": "name", "in": "path", "required": True, "type": "string"},
                    {"name": "text", "in": "body", "schema": {"type": "string"}},
                ],
                "responses": {"200": {"description": "OK"}},
            }
        },
    },
    "definitions": {
        "Pet": {
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
        }
    },
}

OPENAPI3 = {
    "openapi": "3.0.3",
    "info": {"title": "Notes", "version": "1.0.0"},
    "servers": [
        {
            "url": "https://{region}.notes.example.com:8443/v1",
            "variables": {"region": {"default": "eu"}},
        }
    ],
    "paths": {
        "/notes": {
            "post": {
                "operationId": "createNote",
                "parameters": [
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}}
                ],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/Note"}
                        }
                    },
                },
                "responses": {"201": {"description": "Created"}},
            }
        },
        "/login": {
            "post": {
                "operationId": "login",
                "requestBody": {
                    "content": {
                        "application/x-www-form-urlencoded": {
                            "schema": {
                                "type": "object",
                                "required": ["username"],
                                "properties": {
                                    "username": {"type": "string"},
                                    "password": {"type": "string"},
                                },
                            }
                        }
                    }
                },
                "responses": {"200": {"description": "OK"}},
            }
        },
    },
    "components": {
        "schemas": {
            "Note": {
                "type": "object",
                "required": ["text"],
                "properties": {"text": {"type": "string", "minLength": 1}},
            }
        }
    },
}


@pytest.fixture
def petstore():
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def openapi3():
    return copy.deepcopy(OPENAPI3)


@pytest.fixture
def petstore_file(tmp_path, petstore):
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(petstore))
    return path


def echo_app(environ, start_response):
    """WSGI приложение, возвращающее описание полученного запроса"""
    length = int(environ.get("CONTENT_LENGTH") or 0)
    payload = {
        "method": environ["REQUEST_METHOD"],
        "path": environ["PATH_INFO"],
        "query": environ.get("QUERY_STRING", ""),
        "headers": {
            key[5:].replace("_", "-").lower(): value
            for key, value in environ.items()
            if key.startswith("HTTP_")
        },
        "content_type": environ.get("CONTENT_TYPE", ""),
        "body": environ["wsgi.input"].read(length).decode(),
    }
    data = json.dumps(payload).encode()
    start_response(
        "200 OK",
        [("Content-Type", "application/json"), ("Content-Length", str(len(data)))],
    )
    return [data]


async def asgi_echo_app(scope, receive, send):
    """ASGI вариант echo_app"""
    body = b""
    more_body = True
    while more_body:
        message = await receive()
        body += message.get("body", b"")
        more_body = message.get("more_body", False)

    payload = {
        "method": scope["method"],
        "path": scope["path"],
        "query": scope["query_string"].decode(),
        "headers": {k.decode(): v.decode() for k, v in scope["headers"]},
        "body": body.decode(),
    }
    data = json.dumps(payload).encode()
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"application/json")],
        }
    )
    await send({"type": "http.response.body", "body": data})


@pytest.fixture
def wsgi_app():
    return echo_app


@pytest.fixture
def asgi_app():
    return asgi_echo_app
