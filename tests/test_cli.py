"""Tests for the runnergen command-line entry point."""

import textwrap

import pytest

from runnergen.cli import build_parser, main, split_positionals
from runnergen.options import ConfigError

SOURCE = textwrap.dedent("""\
    #include "unity.h"
    #include "MockFoo.h"

    void testOne(void)
    {
    }
    """)


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "TestThing.c"
    path.write_text(SOURCE)
    return path


class TestParser:
    def test_prog(self):
        parser = build_parser()
        assert parser.prog == "runnergen"

    def test_positionals(self):
        args = build_parser().parse_args(["in.c", "out.c", "A.h", "B"])
        assert args.paths == ["in.c", "out.c", "A.h", "B"]

    def test_flags_between_positionals(self):
        args = build_parser().parse_intermixed_args(["in.c", "--order", "out.c", "A.h"])
        assert args.paths == ["in.c", "out.c", "A.h"]
        assert args.order is True

    def test_single_dash_flags(self):
        args = build_parser().parse_args(["-cexception", "-coverage", "-order", "in.c"])
        assert args.cexception and args.coverage and args.order

    def test_double_dash_flags(self):
        args = build_parser().parse_args(["in.c", "--order"])
        assert args.order is True
        assert args.cexception is False


class TestSplitPositionals:
    def test_roles(self):
        pos = split_positionals(["in.c", "out.c", "A.h", "B"])
        assert str(pos.input_file) == "in.c"
        assert str(pos.output_file) == "out.c"
        assert pos.includes == ["A.h", "B"]
        assert pos.config is None

    @pytest.mark.parametrize("name", ["project.yml", "cfg.YAML", "runner.toml"])
    def test_config_pulled_out_anywhere(self, name):
        pos = split_positionals(["in.c", name, "out.c"])
        assert str(pos.config) == name
        assert str(pos.input_file) == "in.c"
        assert str(pos.output_file) == "out.c"

    def test_input_only(self):
        pos = split_positionals(["in.c"])
        assert pos.output_file is None
        assert pos.includes == []

    def test_two_configs_rejected(self):
        with pytest.raises(ConfigError, match="More than one"):
            split_positionals(["a.yml", "b.yml", "in.c"])

    def test_config_without_input_rejected(self):
        with pytest.raises(ConfigError, match="No input"):
            split_positionals(["project.yml"])


class TestMain:
    def test_default_output(self, source_file, capsys):
        assert main([str(source_file)]) == 0
        runner = source_file.with_name("TestThing_Runner.c")
        text = runner.read_text()
        assert "RUN_TEST(testOne, 4);" in text
        assert "  MockFoo_Init();" in text
        assert "Creating test runner for TestThing.c..." in capsys.readouterr().out

    def test_flags_and_includes(self, source_file, tmp_path):
        out = tmp_path / "Runner.c"
        code = main([
            str(source_file), str(out), "Types.h", "Config",
            "--cexception", "--coverage", "--order", "--framework", "unity2",
        ])
        assert code == 0
        text = out.read_text()
        assert '#include "unity2.h"' in text
        assert '#include "Types.h"' in text
        assert '#include "Config.h"' in text
        assert '#include "CException.h"' in text
        assert "  cov_write();" in text
        assert "  GlobalExpectCount = 0;" in text

    def test_config_file_then_flags(self, source_file, tmp_path):
        config = tmp_path / "project.yml"
        config.write_text(":cmock:\n  :includes:\n    - Types.h\n")
        out = tmp_path / "Runner.c"
        code = main([
            str(source_file), str(out), "Extra", "--config", str(config), "--order",
        ])
        assert code == 0
        text = out.read_text()
        assert text.index('#include "Types.h"') < text.index('#include "Extra.h"')
        assert "int GlobalExpectCount;" in text

    def test_verbose_lists_files(self, source_file, tmp_path, capsys):
        out = tmp_path / "Runner.c"
        assert main([str(source_file), str(out), "-v"]) == 0
        printed = capsys.readouterr().out
        assert "MockFoo.c" in printed
        assert "unity.c" in printed

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.c")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_config(self, source_file, tmp_path, capsys):
        config = tmp_path / "project.yml"
        config.write_text("other: {}\n")
        assert main([str(source_file), "--config", str(config)]) == 1
        assert "Error:" in capsys.readouterr().err
        assert not source_file.with_name("TestThing_Runner.c").exists()

    def test_missing_input_prints_no_progress(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.c")]) == 1
        assert "Creating test runner" not in capsys.readouterr().out

    def test_positional_config_keeps_test_source(self, source_file, tmp_path):
        config = tmp_path / "project.yml"
        config.write_text(":cmock:\n  :enforce_strict_ordering: true\n")
        assert main([str(config), str(source_file)]) == 0
        assert source_file.read_text() == SOURCE
        text = source_file.with_name("TestThing_Runner.c").read_text()
        assert "int GlobalExpectCount;" in text
        assert "RUN_TEST(testOne, 4);" in text

    def test_positional_config_with_output_and_includes(self, source_file, tmp_path):
        config = tmp_path / "project.yml"
        config.write_text("cmock:\n  plugins: [cexception]\n")
        out = tmp_path / "Runner.c"
        assert main([str(config), str(source_file), str(out), "Types.h"]) == 0
        text = out.read_text()
        assert '#include "CException.h"' in text
        assert '#include "Types.h"' in text

    def test_positional_and_option_config_conflict(self, source_file, tmp_path, capsys):
        config = tmp_path / "project.yml"
        config.write_text("cmock:\n  coverage: true\n")
        code = main([str(config), str(source_file), "--config", str(config)])
        assert code == 1
        assert "given twice" in capsys.readouterr().err
        assert not source_file.with_name("TestThing_Runner.c").exists()

    def test_flag_before_includes(self, source_file, tmp_path):
        out = tmp_path / "Runner.c"
        assert main([str(source_file), str(out), "--order", "Types.h"]) == 0
        text = out.read_text()
        assert '#include "Types.h"' in text
        assert "int GlobalExpectCount;" in text

    def test_refuses_output_holding_tests(self, source_file, tmp_path, capsys):
        other = tmp_path / "TestOther.c"
        other.write_text("void testKeepMe(void)\n{\n}\n")
        assert main([str(source_file), str(other)]) == 1
        assert "contains test functions" in capsys.readouterr().err
        assert other.read_text() == "void testKeepMe(void)\n{\n}\n"
