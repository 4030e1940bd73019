"""
Tests for the pyproguardmap command line.
"""

import io

import pytest

from pyproguardmap import Deobfuscator, main


@pytest.fixture
def deobfuscator(mapping_file):
    return Deobfuscator(mapping_file)


class TestDeobfuscator:
    """Tests for query lines."""

    def test_bare_class_name(self, deobfuscator):
        """A single name is a class query."""
        assert deobfuscator.deobfuscate("a$a") == "com.example.Foo$Inner"

    def test_class_query(self, deobfuscator):
        """class queries return the clear class name."""
        assert deobfuscator.deobfuscate("class a[]") == "com.example.Foo[]"

    def test_field_query(self, deobfuscator):
        """field queries return the clear field name."""
        assert deobfuscator.deobfuscate("field com.example.Foo b") == "name"

    def test_frame_query(self, deobfuscator):
        """frame queries print the clear method, signature, file and line."""
        assert deobfuscator.deobfuscate("frame com.example.Foo c ()V SourceFile 10") == \
            "com.example.Foo.run()V (Foo.java:20)"

    def test_frame_query_bad_line(self, deobfuscator):
        """A frame query whose line isn't a number is echoed."""
        line = "frame com.example.Foo c ()V SourceFile ten"
        assert deobfuscator.deobfuscate(line) == line

    def test_query_errors_propagate(self, deobfuscator, monkeypatch):
        """Only a bad frame line number is echoed; other query errors surface."""
        def broken(clear_class_name, obfuscated_field_name):
            raise ValueError("broken lookup")

        monkeypatch.setattr(deobfuscator.proguard_map, "get_field_name", broken)
        with pytest.raises(ValueError, match="broken lookup"):
            deobfuscator.deobfuscate("field com.example.Foo b")

    def test_other_lines_echoed(self, deobfuscator):
        """Lines that aren't queries are echoed."""
        assert deobfuscator.deobfuscate("hello there world") == "hello there world"
        assert deobfuscator.deobfuscate("") == ""

    def test_execute(self, mapping_file, tmp_path):
        """execute deobfuscates every line of the input file."""
        queries = tmp_path / "queries.txt"
        queries.write_text("a\nfield com.example.Bar a\n")
        out = io.StringIO()
        Deobfuscator(mapping_file, input_file=str(queries)).execute(out)
        assert out.getvalue() == "com.example.Foo\ngrid\n"


class TestMain:
    """Tests for the console script entry point."""

    def test_main(self, mapping_file, tmp_path, capsys):
        """main reads the mapping and the queries."""
        queries = tmp_path / "queries.txt"
        queries.write_text("b\n")
        main(["--mapping", mapping_file, "--input", str(queries)])
        assert capsys.readouterr().out == "com.example.Bar\n"

    def test_malformed_mapping(self, tmp_path, capsys):
        """A malformed mapping exits with status 1."""
        mapping = tmp_path / "mapping.txt"
        mapping.write_text("not a mapping\n")
        with pytest.raises(SystemExit) as excinfo:
            main(["-m", str(mapping)])
        assert excinfo.value.code == 1
        assert "Can't process mapping file" in capsys.readouterr().err

    def test_missing_mapping(self, tmp_path, capsys):
        """A missing mapping file exits with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            main(["-m", str(tmp_path / "missing.txt")])
        assert excinfo.value.code == 1

    def test_mapping_required(self):
        """The mapping option is required."""
        with pytest.raises(SystemExit):
            main([])
