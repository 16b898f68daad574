"""tests for text VDF field lookups."""
from duna_swap.core.vdf_text import read_all_fields, read_field, read_file_field


LOCALCONFIG = '''"UserLocalConfigStore"
{
\t"friends"
\t{
\t\t"12345"
\t\t{
\t\t\t"name"\t\t"A Friend"
\t\t}
\t\t"PersonaName"\t\t"  NiceStalker "
\t}
}
'''


class TestReadField:
    def test_finds_nested_field(self):
        assert read_field(LOCALCONFIG, "PersonaName") == "NiceStalker"

    def test_first_match_in_document_order(self):
        content = '"root"\n{\n\t"a"\n\t{\n\t\t"name"\t"first"\n\t}\n\t"name"\t"second"\n}\n'
        assert read_field(content, "name") == "first"
        assert read_all_fields(content, "name") == ["first", "second"]

    def test_skips_empty_values(self):
        content = '"root"\n{\n\t"name"\t""\n\t"x"\n\t{\n\t\t"name"\t"real"\n\t}\n}\n'
        assert read_field(content, "name") == "real"

    def test_missing_field(self):
        assert read_field(LOCALCONFIG, "AccountName") is None

    def test_malformed_text_returns_none(self):
        assert read_field('"root"\n{\n\t"name"\t"x"\n', "name") is None
        assert read_all_fields("{{{", "name") == []

    def test_comment_lines_ignored(self):
        content = '// written by steam\n"root"\n{\n\t"name"\t"ok"\n}\n'
        assert read_field(content, "name") == "ok"


class TestReadFileField:
    def test_missing_file(self, tmp_path):
        assert read_file_field(tmp_path / "nope.vdf", "name") is None

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "appmanifest_1.acf"
        path.write_bytes('"AppState"\n{\n\t"name"\t"Caf\xe9"\n}\n'.encode("latin-1"))
        assert read_file_field(path, "name") == "Café"

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "appmanifest_2.acf"
        path.write_bytes(b'\xef\xbb\xbf"AppState"\n{\n\t"name"\t"Bom Game"\n}\n')
        assert read_file_field(path, "name") == "Bom Game"
