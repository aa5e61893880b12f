"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from apigraft.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestCompileCommand:
    """Tests for `apigraft compile`."""

    def test_writes_modules(self, runner, config_file, tmp_path):
        result = runner.invoke(main, ["compile", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "Compiling petstore..." in result.output
        assert "Compiling users..." in result.output
        assert "Done!" in result.output

        petstore = (tmp_path / "generated" / "petstore" / "schema.ts").read_text()
        assert "export const petSchema = z.object({" in petstore
        users = (tmp_path / "generated" / "users" / "schema.ts").read_text()
        assert "export type GetUserQuery = z.infer<typeof getUserQuerySchema>" in users

    def test_single_source_verbose(self, runner, config_file, tmp_path):
        result = runner.invoke(main, ["compile", "-c", str(config_file), "-s", "petstore", "-v"])
        assert result.exit_code == 0, result.output
        assert "Paginated queries: 1" in result.output
        assert "Cycle: " in result.output
        assert not (tmp_path / "generated" / "users").exists()

    def test_warnings_reported(self, runner, config_file):
        result = runner.invoke(main, ["compile", "-c", str(config_file), "-s", "users"])
        assert result.exit_code == 0, result.output
        assert 'warning: Query "ListUsers" has pagination arguments' in result.output

    def test_template_dir(self, runner, config_file, tmp_path):
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "schema.ts.j2").write_text("// custom\n")
        result = runner.invoke(main, ["compile", "-c", str(config_file), "-s", "petstore", "-t", str(templates)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "generated" / "petstore" / "schema.ts").read_text() == "// custom\n"

    def test_exclude_filters(self, runner, config_file, tmp_path):
        result = runner.invoke(
            main,
            ["compile", "-c", str(config_file), "-s", "petstore", "--exclude-category", "params", "--exclude", "*Response"],
        )
        assert result.exit_code == 0, result.output
        petstore = (tmp_path / "generated" / "petstore" / "schema.ts").read_text()
        assert "listPetsParamsSchema" not in petstore
        assert "listPetsResponseSchema" not in petstore
        assert "export const petSchema" in petstore
        assert "createPetRequestSchema" in petstore

    def test_exclude_unknown_category(self, runner, config_file):
        result = runner.invoke(main, ["compile", "-c", str(config_file), "--exclude-category", "widgets"])
        assert result.exit_code == 2
        assert "widgets" in result.output

    def test_unknown_source(self, runner, config_file):
        result = runner.invoke(main, ["compile", "-c", str(config_file), "-s", "nope"])
        assert result.exit_code == 1
        assert "No source named 'nope' in config" in result.output

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "apigraft.yaml"
        path.write_text("sources:\n  - name: Bad_Name\n    type: openapi\n    spec: a.yaml\n")
        result = runner.invoke(main, ["compile", "-c", str(path)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_missing_spec_file(self, runner, tmp_path):
        path = tmp_path / "apigraft.yaml"
        path.write_text("sources:\n  - name: api\n    type: openapi\n    spec: missing.yaml\n")
        result = runner.invoke(main, ["compile", "-c", str(path)])
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["compile", "-c", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestInspectCommand:
    """Tests for `apigraft inspect`."""

    def test_openapi_source(self, runner, config_file, tmp_path):
        result = runner.invoke(main, ["inspect", "-c", str(config_file), "-s", "petstore"])
        assert result.exit_code == 0, result.output
        assert "listPets: offset/hasMore page=offset initial=0 next=lastPage.hasMore" in result.output
        assert "Pet key=id:string list=listPets sync=full predicates=rest-simple" in result.output
        assert "mutations=[insert:createPet, update:updatePet, delete:deletePet]" in result.output
        assert not (tmp_path / "generated").exists()

    def test_graphql_source(self, runner, config_file):
        result = runner.invoke(main, ["inspect", "-c", str(config_file), "-s", "users"])
        assert result.exit_code == 0, result.output
        assert "ListPosts: relay/relay page=after initial=unset" in result.output
