"""Shared fixtures."""

import copy
import json

import pytest
from graphql import build_schema

from apigraft.core.documents import parse_documents
from apigraft.core.loaders import dereference

PETSTORE = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    {"name": "offset", "in": "query", "schema": {"type": "integer"}},
                    {"name": "status", "in": "query", "schema": {"type": "string"}},
                    {"name": "sort", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["data"],
                                    "properties": {
                                        "data": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                                        "hasMore": {"type": "boolean"},
                                        "total": {"type": "integer"},
                                    },
                                }
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/NewPet"}}}
                },
                "responses": {
                    "201": {
                        "description": "created",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                    }
                },
            },
        },
        "/pets/{petId}": {
            "parameters": [{"name": "petId", "in": "path", "required": True, "schema": {"type": "string"}}],
            "get": {
                "operationId": "getPet",
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                    }
                },
            },
            "patch": {
                "operationId": "updatePet",
                "requestBody": {
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/NewPet"}}}
                },
                "responses": {"200": {"description": "ok"}},
            },
            "delete": {
                "operationId": "deletePet",
                "responses": {"204": {"description": "deleted"}},
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "string", "format": "uuid"},
                    "name": {"type": "string"},
                    "tag": {"type": "string", "nullable": True},
                    "owner": {"$ref": "#/components/schemas/Owner"},
                    "status": {"type": "string", "enum": ["available", "sold"]},
                },
            },
            "NewPet": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
            },
            "Owner": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "pets": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                },
            },
            "Unused": {"type": "object", "properties": {"x": {"type": "number"}}},
        }
    },
}

SDL = """
scalar DateTime
scalar Money

enum Role { ADMIN MEMBER }

type User {
  id: ID!
  name: String!
  email: String
  role: Role!
  tags: [String]!
  aliases: [String!]
  createdAt: DateTime!
  balance: Money
  posts(first: Int, after: String): PostConnection!
}

type Post {
  id: ID!
  title: String!
  author: User!
}

type PageInfo {
  hasNextPage: Boolean!
  endCursor: String
}

type PostEdge {
  cursor: String!
  node: Post!
}

type PostConnection {
  edges: [PostEdge!]!
  pageInfo: PageInfo!
}

type UserPage {
  items: [User!]!
  nextCursor: String
}

input UserFilter {
  role: Role
  name: String
}

input CreateUserInput {
  name: String!
  email: String
  role: Role = MEMBER
}

type Query {
  user(id: ID!): User
  users(limit: Int, offset: Int, where: UserFilter): [User!]!
  searchUsers(cursor: String, limit: Int): UserPage!
  posts(first: Int, after: String): PostConnection!
}

type Mutation {
  createUser(input: CreateUserInput!): User!
  updateUser(id: ID!, input: CreateUserInput!): User
  deleteUser(id: ID!): Boolean!
}
"""

OPERATIONS = """
fragment UserFields on User {
  id
  name
  email
}

query GetUser($id: ID!) {
  user(id: $id) {
    ...UserFields
    role
  }
}

query ListUsers($limit: Int, $offset: Int, $where: UserFilter) {
  users(limit: $limit, offset: $offset, where: $where) {
    id
    name
    tags
    aliases
  }
}

query ListPosts($first: Int, $after: String) {
  posts(first: $first, after: $after) {
    edges {
      node {
        id
        title
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}

mutation CreateUser($input: CreateUserInput!) {
  createUser(input: $input) {
    id
  }
}

mutation UpdateUser($id: ID!, $input: CreateUserInput!) {
  updateUser(id: $id, input: $input) {
    id
  }
}

mutation DeleteUser($id: ID!) {
  deleteUser(id: $id)
}
"""


@pytest.fixture
def petstore():
    """A dereferenced copy of the petstore document."""
    return dereference(copy.deepcopy(PETSTORE))


@pytest.fixture
def graphql_schema():
    return build_schema(SDL)


@pytest.fixture
def documents():
    return parse_documents([OPERATIONS])


@pytest.fixture
def petstore_file(tmp_path):
    """The petstore document written to disk, with its refs intact."""
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(PETSTORE))
    return path


@pytest.fixture
def graphql_files(tmp_path):
    """SDL and operations written to ``schema.graphql`` and ``queries/``."""
    (tmp_path / "schema.graphql").write_text(SDL)
    (tmp_path / "queries").mkdir()
    (tmp_path / "queries" / "users.graphql").write_text(OPERATIONS)
    return tmp_path


@pytest.fixture
def config_file(tmp_path, petstore_file, graphql_files):
    """A YAML config with one OpenAPI and one GraphQL source."""
    path = tmp_path / "apigraft.yaml"
    path.write_text(
        "output: ./generated\n"
        "sources:\n"
        "  - name: petstore\n"
        "    type: openapi\n"
        "    spec: ./petstore.json\n"
        "  - name: users\n"
        "    type: graphql\n"
        "    schema: ./schema.graphql\n"
        "    documents: ./queries/*.graphql\n"
        "    overrides:\n"
        "      scalars:\n"
        "        Money: z.string()\n"
    )
    return path
