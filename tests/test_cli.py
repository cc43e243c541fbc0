from __future__ import annotations

import os

import pytest

from confgen import cli, edn
from confgen.edn import Symbol

SAMPLE_MODULE = """
from confgen.registry import defconfig

PORT = defconfig(
    "sample.web/port",
    8080,
    doc=\"\"\"Port the HTTP server listens on.

    Use 0 to pick a free port.\"\"\",
)
TOKEN = defconfig("sample.web/token", doc="API token.", required=True)
"""


@pytest.fixture
def app(project, monkeypatch):
    monkeypatch.chdir(project.root)
    for key in list(os.environ):
        if key.startswith("CONFGEN_"):
            monkeypatch.delenv(key)
    project.module("confgen_cli_sample", SAMPLE_MODULE)
    return project


def _base_args(app):
    return [
        "--module",
        "confgen_cli_sample",
        "--log-dir",
        str(app.root / "logs"),
    ]


def test_cli_generates_config_file(app, capsys):
    app.write("config.edn", "{sample.web/port 9000, legacy/flag true}\n")

    code = cli.main(_base_args(app))
    captured = capsys.readouterr()

    assert code == 0
    text = (app.root / "config.edn").read_text(encoding="utf-8")
    assert "; API token.\n#_sample.web/token\n" in text
    assert "legacy/flag true\n" in text
    assert (
        "; Port the HTTP server listens on.\n"
        "; \n"
        ";     Use 0 to pick a free port.\n"
        "sample.web/port 9000 #_8080\n"
    ) in text
    assert "Generated config.edn" in captured.out
    assert "unbound" in captured.out
    assert (app.root / "logs" / "confgen.log").exists()


def test_cli_output_is_stable_across_runs(app):
    app.write("config.edn", "{sample.web/token \"abc\"}\n")

    assert cli.main(_base_args(app)) == 0
    first = (app.root / "config.edn").read_text(encoding="utf-8")
    assert cli.main(_base_args(app)) == 0
    second = (app.root / "config.edn").read_text(encoding="utf-8")

    assert first == second
    assert edn.loads(second) == {Symbol.parse("sample.web/token"): "abc"}


@pytest.mark.parametrize("flag", ["strict", ":strict", "--strict"])
def test_cli_strict_fails_after_writing(app, capsys, flag):
    code = cli.main([*_base_args(app), flag])
    captured = capsys.readouterr()

    assert code == 1
    assert (app.root / "config.edn").exists()
    assert (
        "Generated config.edn with unbound config vars: (sample.web/token)"
        in captured.err
    )


def test_cli_strict_from_settings_file(app, capsys):
    app.write("confgen.toml", "[generation]\nstrict = true\n")

    assert cli.main(_base_args(app)) == 1


def test_cli_non_strict_succeeds_with_unbound(app):
    assert cli.main(_base_args(app)) == 0


def test_cli_rejects_unknown_flags(app, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([*_base_args(app), "lenient"])

    assert excinfo.value.code == 2
    assert "Unknown flag" in capsys.readouterr().err


def test_cli_reports_settings_errors(app, capsys):
    app.write("confgen.toml", "[paths]\nbogus = 1\n")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(_base_args(app))

    assert excinfo.value.code == 2
    assert "bogus" in capsys.readouterr().err


def test_cli_discovery_failure(app, capsys):
    code = cli.main(
        ["--module", "confgen_missing_module", "--log-dir", str(app.root)]
    )

    assert code == 1
    assert "confgen_missing_module" in capsys.readouterr().err
    assert not (app.root / "config.edn").exists()


def test_cli_bad_source_file(app, capsys):
    app.write("config.edn", "{sample.web/port")

    code = cli.main(_base_args(app))

    assert code == 1
    assert "Failed to parse" in capsys.readouterr().err


def test_cli_custom_source_and_output(app):
    app.write("conf/current.edn", "{sample.web/token \"t\"}")

    code = cli.main(
        [
            *_base_args(app),
            "--source",
            "conf/current.edn",
            "--output",
            "conf/next.edn",
        ]
    )

    assert code == 0
    text = (app.root / "conf" / "next.edn").read_text(encoding="utf-8")
    assert 'sample.web/token "t"\n' in text


def test_cli_warns_about_unset_env_refs(app, capsys, monkeypatch):
    monkeypatch.setenv("SAMPLE_WEB_TOKEN", "placeholder")
    monkeypatch.delenv("SAMPLE_WEB_TOKEN")
    app.write(
        "config.edn", '{sample.web/token #config/env "SAMPLE_WEB_TOKEN"}\n'
    )

    code = cli.main(_base_args(app))
    captured = capsys.readouterr()

    assert code == 0
    assert "sample.web/token is not set" in captured.err
    text = (app.root / "config.edn").read_text(encoding="utf-8")
    assert 'sample.web/token #config/env "SAMPLE_WEB_TOKEN"\n' in text


def test_cli_loads_dotenv_from_cwd(app, capsys, monkeypatch):
    monkeypatch.setenv("SAMPLE_WEB_TOKEN", "placeholder")
    monkeypatch.delenv("SAMPLE_WEB_TOKEN")
    app.write(".env", "SAMPLE_WEB_TOKEN=from-dotenv\n")
    app.write(
        "config.edn", '{sample.web/token #config/env "SAMPLE_WEB_TOKEN"}\n'
    )

    code = cli.main(_base_args(app))
    captured = capsys.readouterr()

    assert code == 0
    assert "is not set" not in captured.err
    assert os.environ["SAMPLE_WEB_TOKEN"] == "from-dotenv"


def test_cli_init_writes_template(app, capsys):
    code = cli.main(["init"])

    assert code == 0
    target = app.root / "confgen.toml"
    assert target.exists()
    assert "[discovery]" in target.read_text(encoding="utf-8")
    assert "Wrote confgen settings" in capsys.readouterr().out

    assert cli.main(["init"]) == 1
    assert "already exists" in capsys.readouterr().err
    assert cli.main(["init", "--force"]) == 0


def test_cli_init_template_is_loadable(app):
    assert cli.main(["init", "--path", "settings/confgen.toml"]) == 0

    code = cli.main(
        [
            *_base_args(app),
            "--settings",
            "settings/confgen.toml",
        ]
    )

    assert code == 0
    assert (app.root / "config.edn").exists()


def test_cli_version(capsys, monkeypatch):
    monkeypatch.setattr(cli, "_version", lambda: "9.9-test")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert "9.9-test" in capsys.readouterr().out


def test_cli_warns_about_nested_env_refs(app, capsys, monkeypatch):
    monkeypatch.setenv("SAMPLE_WEB_TOKEN", "placeholder")
    monkeypatch.delenv("SAMPLE_WEB_TOKEN")
    app.write(
        "config.edn", '{sample.web/token [#config/env "SAMPLE_WEB_TOKEN"]}\n'
    )

    assert cli.main(_base_args(app)) == 0
    assert "sample.web/token is not set" in capsys.readouterr().err


def test_cli_init_then_custom_source_keeps_default_file(app):
    app.write("config.edn", "{legacy/flag true}\n")
    app.write("other.edn", '{sample.web/token "t"}\n')
    assert cli.main(["init"]) == 0

    assert cli.main([*_base_args(app), "--source", "other.edn"]) == 0

    assert (app.root / "config.edn").read_text(encoding="utf-8") == (
        "{legacy/flag true}\n"
    )
    assert 'sample.web/token "t"\n' in (app.root / "other.edn").read_text(
        encoding="utf-8"
    )
