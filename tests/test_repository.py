import threading

import jinja2
import pytest

from serve_helpers.config import Config
from serve_helpers.errors import TemplateCompileError
from serve_helpers.templates import Compilation, TemplateRepository


def say_hello():
    return "Hello, World!"


@pytest.fixture
def repository(assets_dir):
    return TemplateRepository(
        directory=assets_dir,
        extension=".tmpl",
        compilation=Compilation.ONCE,
        util_funcs={"say_hello": say_hello})


class TestProvide:
    def test_compiles_all_templates_in_directory(self, repository):
        templates = repository.provide()
        assert templates.execute("home", "John") == "Welcome home, John!\n"
        assert templates.execute("content", "Bible") == "Content of Bible\n"

    def test_only_matching_extension(self, repository):
        templates = repository.provide()
        assert templates.lookup("info") is None
        assert templates.lookup("info.notmpl") is None
        assert "info" not in templates

    def test_names_from_subdirectories(self, repository):
        templates = repository.provide()
        assert templates.names() == ["content", "home", "partials/list", "utils"]
        assert templates.execute("partials/list", {"items": ["a", "b"]}) == \
            "<ul><li>a</li><li>b</li></ul>\n"

    def test_subdirectory_named_like_a_template(self, repository, template_dir):
        (template_dir / "index.tmpl").mkdir()
        (template_dir / "index.tmpl" / "page.tmpl").write_text("Index, {{ model }}")
        repository.directory = str(template_dir)

        templates = repository.provide()
        assert templates.names() == ["index.tmpl/page"]
        assert templates.execute("index.tmpl/page", "John") == "Index, John"

    def test_keeps_trailing_newline(self, repository, template_dir):
        (template_dir / "page.tmpl").write_text("Index, {{ model }}\n")
        repository.directory = str(template_dir)
        assert repository.provide().execute("page", "John") == "Index, John\n"

    def test_util_funcs(self, repository):
        templates = repository.provide()
        assert templates.execute("utils") == "Hello, World!\n"

    def test_escapes_html(self, repository):
        templates = repository.provide()
        assert templates.execute("home", "<b>") == "Welcome home, &lt;b&gt;!\n"

    def test_templates_can_extend_each_other(self, repository, template_dir):
        (template_dir / "base.tmpl").write_text("[{% block body %}{% endblock %}]")
        (template_dir / "page.tmpl").write_text(
            '{% extends "base" %}{% block body %}{{ model }}{% endblock %}')
        repository.directory = str(template_dir)

        assert repository.provide().execute("page", "hi") == "[hi]"

    def test_unknown_template(self, repository):
        with pytest.raises(jinja2.TemplateNotFound):
            repository.provide().execute("nope")

    def test_missing_directory_is_empty(self, repository, tmp_path, log_messages):
        repository.directory = str(tmp_path / "missing")
        templates = repository.provide()
        assert len(templates) == 0
        assert any("does not exist" in m for m in log_messages)

    def test_file_named_only_by_extension_skipped(self, repository, template_dir):
        (template_dir / ".tmpl").write_text("nameless")
        (template_dir / "named.tmpl").write_text("named")
        repository.directory = str(template_dir)
        assert repository.provide().names() == ["named"]

    def test_syntax_error(self, repository, template_dir):
        (template_dir / "broken.tmpl").write_text("{{ model ")
        repository.directory = str(template_dir)
        with pytest.raises(TemplateCompileError, match="broken"):
            repository.provide()


class TestCompilation:
    def test_compiles_once(self, repository, template_dir):
        page = template_dir / "page.tmpl"
        page.write_text("Index, {{ model }}")
        repository.directory = str(template_dir)

        first = repository.provide()
        assert first.execute("page", "John") == "Index, John"

        page.write_text("Welcome, {{ model }}")
        second = repository.provide()
        assert second is first
        assert second.execute("page", "John") == "Index, John"

    def test_compiles_always(self, repository, template_dir):
        page = template_dir / "page.tmpl"
        page.write_text("Index, {{ model }}")
        repository.directory = str(template_dir)
        repository.compilation = Compilation.ALWAYS

        assert repository.provide().execute("page", "John") == "Index, John"

        page.write_text("Welcome, {{ model }}")
        assert repository.provide().execute("page", "John") == "Welcome, John"

    def test_failed_compilation_is_retried(self, repository, template_dir):
        page = template_dir / "page.tmpl"
        page.write_text("{% if %}")
        repository.directory = str(template_dir)

        with pytest.raises(TemplateCompileError):
            repository.provide()

        page.write_text("fixed")
        assert repository.provide().execute("page") == "fixed"

    def test_concurrent_provide_compiles_once(self, repository):
        compiled = []
        compile = repository.compile

        def counting_compile():
            compiled.append(1)
            return compile()
        repository.compile = counting_compile

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(repository.provide()))
            for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(compiled) == 1
        assert all(r is results[0] for r in results)

    @pytest.mark.parametrize("value, expected", [
        ("once", Compilation.ONCE),
        ("ALWAYS", Compilation.ALWAYS),
        (Compilation.ALWAYS, Compilation.ALWAYS),
    ])
    def test_parse(self, value, expected):
        assert Compilation.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="sometimes"):
            Compilation.parse("sometimes")


class TestFromConfig:
    def test_defaults(self, tmp_path):
        repository = TemplateRepository.from_config(Config(str(tmp_path / "none.toml")))
        assert repository.directory == "templates"
        assert repository.extension == ".tmpl"
        assert repository.compilation is Compilation.ONCE

    def test_configured(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[templates]\n'
            'directory = "views"\n'
            'extension = ".html"\n'
            'compilation = "always"\n')
        repository = TemplateRepository.from_config(Config(str(config_file)))
        assert repository.directory == "views"
        assert repository.extension == ".html"
        assert repository.compilation is Compilation.ALWAYS


class TestTemplateSet:
    def test_mapping_model_keys_are_variables(self, repository):
        templates = repository.provide()
        assert templates.execute("partials/list", {"items": [1]}) == "<ul><li>1</li></ul>\n"

    def test_len_and_contains(self, repository):
        templates = repository.provide()
        assert len(templates) == 4
        assert "home" in templates
